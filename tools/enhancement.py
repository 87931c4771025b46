"""Credit-charged text enhancement tools and account tools"""

import asyncio
import logging
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from exceptions import SeoGeneratorError, UserNotFoundError
from managers.credit_ledger import CreditLedger
from managers.seo_pipeline import SeoPipeline
from tools.helpers import error_response

logger = logging.getLogger("SEO_Server")

AUTHENTICATION_REQUIRED = {
    "error": "Authentication required. Create an account to use AI enhancement.",
    "error_code": "AUTHENTICATION_REQUIRED",
}


async def _balance(ledger: CreditLedger, user_id: int) -> Optional[int]:
    try:
        return await asyncio.to_thread(ledger.get_balance, user_id)
    except UserNotFoundError:
        return None


def register_enhancement_tools(
    mcp: FastMCP,
    pipeline: SeoPipeline,
    ledger: CreditLedger
):
    """Register enhancement and account tools with the MCP server"""

    @mcp.tool()
    async def enhance_description(description: str, user_id: Optional[int] = None) -> dict:
        """Rewrite a site description to be more engaging and SEO-friendly.

        Costs 1 credit. The credit is refunded if the enhancement service fails.

        Args:
            description: The description to improve
            user_id: Account id returned by create_account

        Returns:
            Dict with enhanced_description and credits_remaining, or an error with
            error_code INSUFFICIENT_CREDITS, AUTHENTICATION_REQUIRED or UPSTREAM_ERROR.
        """
        if user_id is None:
            return dict(AUTHENTICATION_REQUIRED)
        try:
            enhanced = await pipeline.enhance_description(description, user_id)
        except UserNotFoundError:
            return dict(AUTHENTICATION_REQUIRED)
        except SeoGeneratorError as e:
            logger.warning(f"enhance_description failed for user {user_id}: {e}")
            return error_response(e)
        except Exception as e:
            return error_response(e, "Failed to enhance description. Please try again.")

        return {
            "success": True,
            "enhanced_description": enhanced,
            "credits_remaining": await _balance(ledger, user_id),
        }

    @mcp.tool()
    async def suggest_extra_fields(
        site_url: str,
        title: str,
        description: str,
        user_id: Optional[int] = None,
    ) -> dict:
        """Suggest site slang, keywords and a social image subtitle for a website.

        Costs 1 credit. The credit is refunded if the enhancement service fails.

        Args:
            site_url: Website URL
            title: Website title
            description: Website description
            user_id: Account id returned by create_account

        Returns:
            Dict with siteSlang, keywords, imageSubtitle and credits_remaining.
        """
        if user_id is None:
            return dict(AUTHENTICATION_REQUIRED)
        try:
            fields = await pipeline.suggest_extra_fields(site_url, title, description, user_id)
        except UserNotFoundError:
            return dict(AUTHENTICATION_REQUIRED)
        except SeoGeneratorError as e:
            logger.warning(f"suggest_extra_fields failed for user {user_id}: {e}")
            return error_response(e)
        except Exception as e:
            return error_response(e, "Failed to generate extra fields. Please try again.")

        return {"success": True, **fields, "credits_remaining": await _balance(ledger, user_id)}

    @mcp.tool()
    async def create_account(username: str, email: str) -> dict:
        """Create an account with the starting credit grant.

        Args:
            username: Unique username
            email: Unique email address

        Returns:
            Dict with the new account's id, username, email and credits.
        """
        try:
            user = await asyncio.to_thread(ledger.create_user, username, email)
        except SeoGeneratorError as e:
            return error_response(e)
        return {"success": True, "user": user}

    @mcp.tool()
    async def get_account(user_id: int, history_limit: int = 10) -> dict:
        """Get an account's credit balance and recent usage history.

        Args:
            user_id: Account id returned by create_account
            history_limit: Maximum number of usage entries to return (newest first)
        """
        try:
            user: Dict[str, Any] = await asyncio.to_thread(ledger.get_user, user_id)
            history = await asyncio.to_thread(ledger.get_usage_history, user_id, history_limit)
        except UserNotFoundError:
            return dict(AUTHENTICATION_REQUIRED)
        except SeoGeneratorError as e:
            return error_response(e)
        return {"success": True, "user": user, "usage_history": history}
