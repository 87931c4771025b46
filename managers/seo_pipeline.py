"""Pipeline facade: generation, credit-guarded enhancement and download packaging"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from enhancement_client import EnhancementClient
from exceptions import (
    GenerationError,
    InsufficientCreditsError,
    PackagingError,
    SeoGeneratorError,
    UpstreamError,
    ValidationError,
)
from managers.archive_packager import ArchivePackager
from managers.credit_ledger import CreditLedger
from managers.icon_manager import IconRasterizer
from managers.seo_composer import AssetComposer, canonicalize_url, is_well_formed_url
from managers.session_store import SessionStore
from models.bundle import SiteAssetBundle, SiteFields
from tools.helpers import UploadedImage

logger = logging.getLogger("SEO_Server")

ACTION_ENHANCEMENT = "AI Enhancement"
ACTION_EXTRA_FIELDS = "AI Extra Fields"
ACTION_REFUND = "Refund"


class SeoPipeline:
    """Entry points the MCP tool layer calls into"""

    def __init__(
        self,
        session_store: SessionStore,
        rasterizer: IconRasterizer,
        composer: AssetComposer,
        packager: ArchivePackager,
        ledger: Optional[CreditLedger] = None,
        enhancer: Optional[EnhancementClient] = None,
        credits_per_call: int = 1,
    ):
        self.session_store = session_store
        self.rasterizer = rasterizer
        self.composer = composer
        self.packager = packager
        self.ledger = ledger
        self.enhancer = enhancer
        self.credits_per_call = credits_per_call

    @staticmethod
    def _validate_fields(title: str, description: str, site_url: str) -> SiteFields:
        if not title or not title.strip():
            raise ValidationError("Title is required")
        if not description or not description.strip():
            raise ValidationError("Description is required")
        if not site_url or not site_url.strip():
            raise ValidationError("Site URL is required")
        if not is_well_formed_url(canonicalize_url(site_url)):
            raise ValidationError("Site URL is not a valid URL")
        return SiteFields(title=title, description=description, site_url=site_url)

    async def generate(
        self,
        title: str,
        description: str,
        site_url: str,
        site_links: Optional[str] = "",
        image: Optional[UploadedImage] = None,
        delete_source: bool = False,
    ) -> SiteAssetBundle:
        """Run one generation request inside a fresh session namespace.

        Args:
            title: Site title
            description: Site description
            site_url: Canonical site URL
            site_links: Newline-delimited page URLs for the sitemap
            image: Optional validated logo upload
            delete_source: Remove the uploaded file once it has been consumed

        Returns:
            The composed SiteAssetBundle

        Raises:
            ValidationError: If a required field is missing (no namespace is allocated)
            GenerationError: If allocation, decoding or composition fails (the namespace is reclaimed)
        """
        try:
            fields = self._validate_fields(title, description, site_url)
            session = await asyncio.to_thread(self.session_store.allocate)
            try:
                catalog = None
                if image is not None:
                    catalog = await self.rasterizer.generate(
                        image.path,
                        session,
                        original_filename=image.original_filename,
                        site_name=title.strip(),
                        site_description=description.strip(),
                    )
                bundle = await self.composer.compose(fields, catalog, site_links, session)
            except GenerationError:
                await asyncio.to_thread(self.session_store.reclaim_now, session.session_id)
                raise
            except Exception as e:
                logger.exception(f"Generation failed for session {session.session_id}")
                await asyncio.to_thread(self.session_store.reclaim_now, session.session_id)
                raise GenerationError("Failed to generate SEO assets") from e
        finally:
            if delete_source and image is not None:
                await asyncio.to_thread(self._delete_upload, image.path)

        logger.info(
            f"Generated SEO assets for {bundle.site_url} in session {bundle.session_id} "
            f"({len(bundle.site_links)} links, icons: {bundle.icon_catalog is not None})"
        )
        return bundle

    @staticmethod
    def _delete_upload(path: Path):
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Error cleaning up uploaded file: {e}")

    async def _charged_call(
        self,
        user_id: int,
        action: str,
        usage_description: str,
        call: Callable[..., Any],
        *args,
    ) -> Any:
        """Pre-check, debit, log, then call upstream. Refunds when the call fails."""
        if self.ledger is None or self.enhancer is None:
            raise UpstreamError("Text enhancement service is not configured")

        cost = self.credits_per_call
        has_credits = await asyncio.to_thread(self.ledger.has_credits, user_id, cost)
        if not has_credits:
            balance = await asyncio.to_thread(self.ledger.get_balance, user_id)
            raise InsufficientCreditsError(user_id, cost, balance)

        await asyncio.to_thread(self.ledger.debit_credits, user_id, cost)
        await asyncio.to_thread(self.ledger.log_usage, user_id, action, cost, usage_description)

        try:
            return await asyncio.to_thread(call, *args)
        except Exception as e:
            await asyncio.to_thread(self.ledger.add_credits, user_id, cost)
            await asyncio.to_thread(
                self.ledger.log_usage, user_id, ACTION_REFUND, -cost, f"Refund for failed {action}"
            )
            logger.warning(f"{action} failed for user {user_id}, refunded {cost} credit(s)")
            if isinstance(e, UpstreamError):
                raise
            logger.exception(f"Unexpected error during {action}")
            raise UpstreamError(f"{action} failed") from e

    async def enhance_description(self, text: str, user_id: int) -> str:
        """Return an improved description, charging the user one call.

        Raises:
            ValidationError: If text is empty
            UserNotFoundError: If the user does not exist
            InsufficientCreditsError: If the balance is too low (no upstream call is made)
            UpstreamError: If the enhancement call fails (the debit is refunded)
        """
        if not text or not text.strip():
            raise ValidationError("Description is required")
        text = text.strip()
        return await self._charged_call(
            user_id,
            ACTION_ENHANCEMENT,
            f'Enhanced description: "{text[:50]}..."',
            self.enhancer.enhance if self.enhancer else None,
            text,
        )

    async def suggest_extra_fields(self, site_url: str, title: str, description: str, user_id: int) -> Dict[str, str]:
        if not title or not description or not site_url:
            raise ValidationError("Site URL, title and description are required")
        return await self._charged_call(
            user_id,
            ACTION_EXTRA_FIELDS,
            f"Extra fields for {canonicalize_url(site_url)}",
            self.enhancer.generate_extra_fields if self.enhancer else None,
            canonicalize_url(site_url),
            title.strip(),
            description.strip(),
        )

    async def package_for_download(self, bundle_or_session_id: Union[SiteAssetBundle, str]) -> Path:
        """Build the archive for a bundle or a live session id.

        Raises:
            SessionExpiredError: If the namespace is gone
            PackagingError: If the archive cannot be written
        """
        try:
            return await self.packager.package(bundle_or_session_id)
        except SeoGeneratorError:
            raise
        except Exception as e:
            logger.exception("Unexpected packaging failure")
            raise PackagingError("Failed to create download package") from e

    async def release_download(self, archive_path: Union[str, Path]):
        """Remove a served archive from its session's temp directory.

        Raises:
            ValidationError: If the path is not an archive inside a session temp directory
        """
        path = Path(archive_path).resolve()
        sessions_root = self.session_store.sessions_root
        if (
            path.suffix != ".zip"
            or path.parent.name != "temp"
            or path.parent.parent.parent != sessions_root
        ):
            raise ValidationError("Not a session download archive")
        try:
            await asyncio.to_thread(path.unlink, True)
            logger.info(f"Temporary zip file cleaned up: {path.name}")
        except OSError as e:
            logger.warning(f"Error cleaning up zip file: {e}")
