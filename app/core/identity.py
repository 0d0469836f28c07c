import asyncio
import logging
from typing import Dict, Iterable, Optional

from app.slack.client import SlackApi, get_slack_api

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Maps Slack user ids to display names, one concurrent lookup per id."""

    def __init__(self, api: Optional[SlackApi] = None, verbose: bool = False):
        self.api = api or get_slack_api()
        self.verbose = verbose

    async def resolve(self, author_ids: Iterable[str]) -> Dict[str, str]:
        unique_ids = sorted({uid for uid in author_ids if uid})
        if not unique_ids:
            return {}

        logger.info(f"[SUMMARY] Fetching user info for {len(unique_ids)} users")
        names = await asyncio.gather(
            *(self._lookup(uid) for uid in unique_ids),
            return_exceptions=True
        )

        identities = {}
        for uid, name in zip(unique_ids, names):
            if isinstance(name, BaseException):
                logger.warning(f"[SUMMARY] Error fetching user info for {uid}: {name}")
                identities[uid] = uid
            else:
                identities[uid] = name or uid

        if self.verbose:
            logger.info(f"[SUMMARY-VERBOSE] Completed user map: {identities}")
        return identities

    async def _lookup(self, user_id: str) -> Optional[str]:
        result = await self.api.user_info(user_id)
        if not result.ok:
            if self.verbose:
                logger.info(f"[SUMMARY-VERBOSE] Failed to get user info for {user_id}: {result.error}")
            return None

        user = result.data.get("user") or {}
        profile = user.get("profile") or {}
        return user.get("real_name") or profile.get("display_name") or None
