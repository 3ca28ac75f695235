"""Export orchestrator.

선택 → 정렬 → fetch/정규화 (동시 실행) → 커버 → 조립 → 패키징 → 결과 집계
전체 내보내기 잡을 관리합니다.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from post_exporter.adapters.content_fetcher import ContentFetcher
from post_exporter.config.settings import Settings, get_settings
from post_exporter.exceptions import (
    ConfigurationError,
    ContentFetchError,
    CoverError,
    ExportError,
    PackagingError,
)
from post_exporter.models.cover import CoverAsset, TitlePage
from post_exporter.models.document import NormalizedDocument
from post_exporter.models.export import (
    CoverMode,
    ExportConfiguration,
    ExportFailure,
    ExportFormat,
    ExportMode,
    ExportOutcome,
    ExportRequest,
    ExportStatus,
)
from post_exporter.models.publication import PostRef, PublicationRef
from post_exporter.services.assembler import Compilation, DocumentAssembler
from post_exporter.services.cover_resolver import CoverResolver
from post_exporter.services.epub_packager import EpubPackager
from post_exporter.services.images import download_images
from post_exporter.services.naming import FileNameAllocator
from post_exporter.services.normalizer import ContentNormalizer
from post_exporter.services.ordering import resolve_order, select_posts
from post_exporter.services.output_files import remove_files
from post_exporter.services.text_packager import TextPackager

logger = structlog.get_logger(__name__)

# 패키징 순서 (EPUB 먼저)
FORMAT_ORDER = (ExportFormat.EPUB, ExportFormat.TXT)


@dataclass
class PostResult:
    """포스트 하나의 fetch/정규화 결과 (문서 또는 실패 사유)."""

    index: int
    post: PostRef
    document: NormalizedDocument | None = None
    reason: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.document is not None


class _Cancelled(Exception):
    """cancel_event에 의한 잡 중단 (내부 제어 흐름)."""


# =============================================================================
# Pre-flight validation
# =============================================================================


def validate_configuration(
    configuration: ExportConfiguration, posts: list[PostRef]
) -> None:
    """잡 시작 전 설정 검증. 모든 문제를 한 번에 모아서 보고합니다.

    Raises:
        ConfigurationError: 하나 이상의 문제가 있는 경우
    """
    problems: list[str] = []

    if not configuration.formats:
        problems.append("At least one output format must be selected.")

    if (
        configuration.cover_mode == CoverMode.CUSTOM
        and configuration.wants_epub
        and not configuration.custom_cover_image
    ):
        problems.append("Custom cover mode requires a cover image for EPUB output.")

    output_directory = configuration.output_directory.strip()
    if not output_directory:
        problems.append("Output directory is required.")
    else:
        directory = Path(output_directory)
        if not directory.exists():
            problems.append(f"Output directory does not exist: {directory}")
        elif not directory.is_dir():
            problems.append(f"Output path is not a directory: {directory}")
        elif not os.access(directory, os.W_OK):
            problems.append(f"Output directory is not writable: {directory}")

    if configuration.mode == ExportMode.SPECIFIC_POSTS:
        if not configuration.selected_post_ids:
            problems.append("No posts selected for export.")
        elif not select_posts(posts, configuration)[0]:
            problems.append("None of the selected posts are in the post list.")
    elif not posts:
        problems.append("The publication has no posts to export.")

    if problems:
        raise ConfigurationError(problems)


# =============================================================================
# Orchestrator
# =============================================================================


class ExportOrchestrator:
    """내보내기 잡 실행기.

    잡 간 공유 상태가 없으므로 하나의 인스턴스로 여러 잡을 실행할 수 있습니다.

    Usage:
        async with HttpContentFetcher() as fetcher:
            outcome = await ExportOrchestrator(fetcher).run(request)
    """

    def __init__(
        self,
        fetcher: ContentFetcher,
        normalizer: ContentNormalizer | None = None,
        cover_resolver: CoverResolver | None = None,
        assembler: DocumentAssembler | None = None,
        epub_packager: EpubPackager | None = None,
        text_packager: TextPackager | None = None,
        settings: Settings | None = None,
        max_concurrency: int | None = None,
        fetch_timeout: float | None = None,
    ) -> None:
        """ExportOrchestrator 초기화.

        Args:
            fetcher: 포스트/이미지 fetch collaborator
            normalizer: 콘텐츠 정규화기
            cover_resolver: 커버 결정기
            assembler: 문서 조립기
            epub_packager: EPUB 패키저
            text_packager: 텍스트 패키저
            settings: 엔진 설정 (기본: get_settings())
            max_concurrency: 동시 fetch 상한 (기본: EXPORT_MAX_CONCURRENT_FETCHES)
            fetch_timeout: fetch 1건당 타임아웃 초 (기본: EXPORT_FETCH_TIMEOUT_SECONDS)
        """
        self.settings = settings or get_settings()
        self.fetcher = fetcher
        self.max_concurrency = max_concurrency or self.settings.EXPORT_MAX_CONCURRENT_FETCHES
        self.fetch_timeout = fetch_timeout or self.settings.EXPORT_FETCH_TIMEOUT_SECONDS
        self.normalizer = normalizer or ContentNormalizer(
            words_per_minute=self.settings.EXPORT_WORDS_PER_MINUTE
        )
        self.cover_resolver = cover_resolver or CoverResolver(
            fetcher, timeout_seconds=self.fetch_timeout
        )
        self.assembler = assembler or DocumentAssembler()
        self.epub_packager = epub_packager or EpubPackager(
            language=self.settings.EXPORT_LANGUAGE
        )
        self.text_packager = text_packager or TextPackager()

    async def run(
        self, request: ExportRequest, cancel_event: asyncio.Event | None = None
    ) -> ExportOutcome:
        """내보내기 잡 실행.

        Args:
            request: 퍼블리케이션, 포스트 목록, 내보내기 옵션
            cancel_event: 설정되면 잡을 취소 (작성된 파일 삭제 후 cancelled 반환)

        Returns:
            잡 종료 시 한 번 생성되는 ExportOutcome

        Raises:
            ConfigurationError: 사전 검증 실패 (fetch/쓰기 전에 발생)
            asyncio.CancelledError: 실행 중인 태스크가 취소된 경우 (정리 후 재발생)
        """
        configuration = request.configuration
        validate_configuration(configuration, request.posts)

        selected, warnings = select_posts(request.posts, configuration)
        ordered = resolve_order(selected, configuration)
        log = logger.bind(publication=request.publication.title)
        log.info(
            "export_started",
            posts=len(ordered),
            formats=[f.value for f in configuration.formats],
            granularity=configuration.granularity.value,
        )

        written: list[Path] = []
        try:
            self._check_cancelled(cancel_event)
            results = await self._fetch_all(
                ordered, request.publication, configuration, cancel_event
            )

            succeeded: list[str] = []
            failed: list[ExportFailure] = []
            documents: list[NormalizedDocument] = []
            for result in results:
                warnings.extend(result.warnings)
                if result.document is not None:
                    succeeded.append(result.post.id)
                    documents.append(result.document)
                else:
                    failed.append(
                        ExportFailure(
                            post_id=result.post.id,
                            reason=result.reason or "Unknown error",
                        )
                    )

            self._check_cancelled(cancel_event)
            cover = await self._resolve_cover(
                request.publication, configuration, documents, warnings
            )

            allocator = FileNameAllocator()
            output_directory = Path(configuration.output_directory)
            for export_format in FORMAT_ORDER:
                if export_format not in configuration.formats:
                    continue
                compilations = self.assembler.assemble(
                    documents,
                    export_format,
                    configuration.granularity,
                    request.publication,
                    configuration.metadata_fields,
                    cover,
                )
                if not compilations:
                    # per_post 에서 성공한 문서가 없는 경우
                    warnings.append(
                        f"No documents to write for {export_format.value} output; "
                        "no file was produced"
                    )
                    continue
                for compilation in compilations:
                    self._check_cancelled(cancel_event)
                    if compilation.is_empty:
                        warnings.append(
                            f"No documents to write for {export_format.value} "
                            f"output '{compilation.label}'; no file was produced"
                        )
                        continue

                    file_name = allocator.allocate(
                        request.publication.title, compilation.label, compilation.extension
                    )
                    path = output_directory / file_name
                    written.append(path)
                    try:
                        await self._package(compilation, cover, path)
                    except PackagingError as e:
                        written.remove(path)
                        log.error(
                            "packaging_failed",
                            key=compilation.key,
                            export_format=export_format.value,
                            error=str(e),
                        )
                        failed.append(
                            ExportFailure(
                                post_id=f"{export_format.value}:{compilation.key}",
                                reason=str(e),
                            )
                        )

            self._check_cancelled(cancel_event)

        except _Cancelled:
            remove_files(written)
            log.info("export_cancelled", removed=len(written))
            return ExportOutcome(status=ExportStatus.CANCELLED, warnings=warnings)

        except asyncio.CancelledError:
            remove_files(written)
            log.info("export_task_cancelled", removed=len(written))
            raise

        log.info(
            "export_completed",
            succeeded=len(succeeded),
            failed=len(failed),
            files=len(written),
            warnings=len(warnings),
        )
        return ExportOutcome(
            status=ExportStatus.COMPLETED,
            succeeded=succeeded,
            failed=failed,
            output_files=[str(path) for path in written],
            warnings=warnings,
        )

    # -------------------------------------------------------------------------
    # Fetch & normalize
    # -------------------------------------------------------------------------

    async def _fetch_all(
        self,
        posts: list[PostRef],
        publication: PublicationRef,
        configuration: ExportConfiguration,
        cancel_event: asyncio.Event | None,
    ) -> list[PostResult]:
        """세마포어로 동시 실행 수를 제한하여 fetch/정규화.

        완료 순서와 무관하게 결과는 입력(정렬된) 순서로 반환됩니다.

        Raises:
            _Cancelled: cancel_event가 먼저 설정된 경우 (진행 중인 fetch는 폐기)
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)
        embed_images = configuration.wants_epub and self.settings.EXPORT_EMBED_IMAGES

        tasks = [
            asyncio.create_task(
                self._fetch_one(index, post, publication, semaphore, embed_images)
            )
            for index, post in enumerate(posts)
        ]
        if not tasks:
            return []

        gathering = asyncio.gather(*tasks)
        if cancel_event is None:
            results = await gathering
        else:
            waiter = asyncio.create_task(cancel_event.wait())
            try:
                done, _ = await asyncio.wait(
                    {gathering, waiter}, return_when=asyncio.FIRST_COMPLETED
                )
            except asyncio.CancelledError:
                gathering.cancel()
                waiter.cancel()
                raise

            if gathering not in done:
                gathering.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await gathering
                raise _Cancelled()

            waiter.cancel()
            results = gathering.result()

        return sorted(results, key=lambda result: result.index)

    async def _fetch_one(
        self,
        index: int,
        post: PostRef,
        publication: PublicationRef,
        semaphore: asyncio.Semaphore,
        embed_images: bool,
    ) -> PostResult:
        """포스트 하나 처리. 예외는 PostResult의 실패 사유로 변환됩니다."""
        async with semaphore:
            try:
                raw = await asyncio.wait_for(
                    self.fetcher.fetch(post.url), self.fetch_timeout
                )
                document = self.normalizer.normalize(post, raw, publication)
                warnings: list[str] = []
                if embed_images:
                    warnings = await download_images(
                        document, self.fetcher, self.fetch_timeout
                    )
            except TimeoutError:
                error = ContentFetchError(
                    f"Request timed out after {self.fetch_timeout:g}s",
                    url=post.url,
                    post_id=post.id,
                )
                logger.warning("post_fetch_timeout", post_id=post.id, url=post.url)
                return PostResult(index=index, post=post, reason=str(error))
            except ExportError as e:
                logger.warning(
                    "post_failed",
                    post_id=post.id,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                return PostResult(index=index, post=post, reason=str(e))
            except Exception as e:
                logger.exception("post_failed_unexpectedly", post_id=post.id)
                return PostResult(index=index, post=post, reason=f"Unexpected error: {e}")

        logger.debug("post_normalized", post_id=post.id, blocks=len(document.blocks))
        return PostResult(index=index, post=post, document=document, warnings=warnings)

    # -------------------------------------------------------------------------
    # Cover & packaging
    # -------------------------------------------------------------------------

    async def _resolve_cover(
        self,
        publication: PublicationRef,
        configuration: ExportConfiguration,
        documents: list[NormalizedDocument],
        warnings: list[str],
    ) -> CoverAsset:
        """잡 단위로 커버를 한 번 결정. 실패는 경고로 기록하고 커버 없이 진행."""
        title_page = TitlePage(title=publication.title, author=publication.author)
        if not documents:
            return CoverAsset(title_page=title_page)

        try:
            return await self.cover_resolver.resolve(
                configuration.cover_mode,
                configuration.custom_cover_image,
                publication,
                custom_media_type=configuration.custom_cover_media_type,
                include_image=configuration.wants_epub,
            )
        except CoverError as e:
            logger.warning("cover_failed", error=str(e))
            warnings.append(f"Cover image unavailable: {e}")
            return CoverAsset(title_page=title_page)

    async def _package(
        self, compilation: Compilation, cover: CoverAsset, path: Path
    ) -> None:
        """워커 스레드에서 패키징. 태스크가 취소되면 쓰기가 끝날 때까지 기다린 뒤 전파."""
        if compilation.export_format == ExportFormat.EPUB:
            packaging = asyncio.ensure_future(
                asyncio.to_thread(self.epub_packager.package, compilation, cover, path)
            )
        else:
            packaging = asyncio.ensure_future(
                asyncio.to_thread(self.text_packager.package, compilation, path)
            )

        try:
            await asyncio.shield(packaging)
        except asyncio.CancelledError:
            with contextlib.suppress(ExportError):
                await packaging
            raise

    @staticmethod
    def _check_cancelled(cancel_event: asyncio.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise _Cancelled()
