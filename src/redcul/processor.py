"""Release pipeline: probe, validate, plan, transcode, package, upload."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .config import RedculConfig
from .encode.transcoder import TranscodeService
from .error_handling import (
    ExternalToolError,
    RedculError,
    SourceMismatch,
    ValidationFailure,
)
from .notify.ntfy import NtfyNotifier
from .origin.descriptor import OriginDescriptor, load_origin
from .package.torrent import TorrentBuilder
from .release.assembler import ProducedPackage, SubmissionPayload, assemble_submission
from .release.edition import EditionIdentity, ExistingVariant, match_edition
from .release.naming import release_basename, variant_output_dir
from .release.planner import TranscodePlan, VariantPlan, plan_transcodes
from .release.validation import (
    ProbeResult,
    SampleRateCheck,
    check_sample_rate,
    missing_tags,
    required_tags_present,
)
from .services.catalogue import CatalogueClient, CatalogueGroup
from .services.ffprobe import AudioProber

logger = logging.getLogger(__name__)


class ReleaseStatus(Enum):
    """Final state of one release after a run."""

    UPLOADED = "uploaded"
    PLANNED = "planned"  # dry run
    NOTHING_TO_DO = "nothing_to_do"
    SKIPPED = "skipped"  # not a FLAC source
    INVALID = "invalid"
    FAILED = "failed"


@dataclass
class PreparedRelease:
    """Everything known about a release before any transcoding starts."""

    release_dir: Path
    origin: OriginDescriptor
    edition: EditionIdentity
    probes: list[ProbeResult]
    sample_rate: SampleRateCheck
    group: CatalogueGroup
    edition_group: list[ExistingVariant]
    plan: TranscodePlan

    @property
    def title(self) -> str:
        return release_basename(self.origin, self.edition)


@dataclass
class ReleaseOutcome:
    release_dir: Path
    status: ReleaseStatus
    prepared: PreparedRelease | None = None
    packages: list[ProducedPackage] = field(default_factory=list)
    response: dict[str, Any] | None = None
    errors: list[Exception] = field(default_factory=list)

    @property
    def title(self) -> str:
        if self.prepared:
            return self.prepared.title
        return self.release_dir.name

    def __str__(self) -> str:
        return f"{self.title} ({self.status.value})"


class ReleaseProcessor:
    """Processes release directories one at a time."""

    def __init__(
        self,
        config: RedculConfig,
        *,
        catalogue: CatalogueClient | None = None,
        prober: AudioProber | None = None,
        transcoder: TranscodeService | None = None,
        torrent_builder: TorrentBuilder | None = None,
        notifier: NtfyNotifier | None = None,
    ):
        self.config = config
        self.catalogue = catalogue or CatalogueClient(config)
        self.prober = prober or AudioProber(config)
        self.transcoder = transcoder or TranscodeService(config)
        self.torrent_builder = torrent_builder or TorrentBuilder(config)
        self.notifier = notifier or NtfyNotifier(config)

    async def prepare(self, release_dir: Path) -> PreparedRelease:
        """Read, probe and validate a release, then plan its transcodes.

        Raises:
            SourceMismatch: the release is not FLAC.
            ValidationFailure: no file carries the required tags.
        """
        origin = load_origin(release_dir)
        if not origin.is_flac:
            raise SourceMismatch(origin.format)

        logger.info("hash: %s", origin.info_hash)
        logger.info("permalink: %s", origin.permalink)

        probes = await self.prober.probe_files(
            release_dir / name for name in origin.flac_files
        )
        if not required_tags_present(probes):
            missing = sorted(set().union(*(missing_tags(p.tags) for p in probes)))
            raise ValidationFailure(
                f"Required tags are not present! check {release_dir}",
                values=missing,
            )
        logger.info("Required tags are present")

        sample_rate = check_sample_rate(probes)

        edition = EditionIdentity.from_origin(origin)
        logger.info("Edition: %s", edition)

        group = await self.catalogue.torrent_group(origin.info_hash)
        edition_group = match_edition(edition, group.variants)
        logger.info(
            "Group %s has %d torrents, %d in this edition",
            group.group_id,
            len(group.variants),
            len(edition_group),
        )

        plan = plan_transcodes(edition_group, origin.encoding, probes, sample_rate)
        logger.info("Planned variants: %s", plan.labels or "none")

        return PreparedRelease(
            release_dir=release_dir,
            origin=origin,
            edition=edition,
            probes=probes,
            sample_rate=sample_rate,
            group=group,
            edition_group=edition_group,
            plan=plan,
        )

    async def produce(
        self,
        prepared: PreparedRelease,
    ) -> tuple[list[ProducedPackage], ExternalToolError | None]:
        """Run the planned transcodes in order, each followed by its torrent.

        The first failure stops the remaining variants; packages made before
        it are returned together with the error.
        """
        packages: list[ProducedPackage] = []
        loop = asyncio.get_running_loop()

        for variant in prepared.plan.variants:
            try:
                package = await loop.run_in_executor(
                    None,
                    self._produce_variant,
                    prepared,
                    variant,
                )
            except ExternalToolError as e:
                logger.error("%s variant failed: %s", variant.label, e.message)
                return packages, e
            packages.append(package)

        return packages, None

    def _produce_variant(
        self,
        prepared: PreparedRelease,
        variant: VariantPlan,
    ) -> ProducedPackage:
        output_dir = variant_output_dir(
            self.config.transcode_dir,
            prepared.origin,
            prepared.edition,
            variant,
        )
        result = self.transcoder.produce(variant, prepared.release_dir, output_dir)
        if not result.success:
            raise ExternalToolError(
                f"{variant.label} transcode",
                details=result.error_message,
                solution=f"Check the log for the failing command, output left in {output_dir}",
            )

        try:
            torrent_path = self.torrent_builder.build(output_dir)
        except OSError as e:
            raise ExternalToolError(
                f"{variant.label} torrent",
                details=str(e),
                original_error=e,
            ) from e
        return ProducedPackage.from_plan(
            variant,
            torrent_path,
            result.method,
            prepared.origin.permalink,
        )

    async def process_release(
        self,
        release_dir: Path,
        *,
        dry_run: bool = False,
    ) -> ReleaseOutcome:
        """Take one release from origin file to finished upload.

        Raises:
            RedculError: for skips, validation failures, tool and API errors.
        """
        prepared = await self.prepare(release_dir)
        outcome = ReleaseOutcome(release_dir=release_dir, status=ReleaseStatus.PLANNED)
        outcome.prepared = prepared
        outcome.errors.extend(prepared.plan.skipped)

        if not prepared.plan:
            logger.info("No variants missing for %s", prepared.title)
            outcome.status = ReleaseStatus.NOTHING_TO_DO
            if not dry_run:
                self.notifier.notify_nothing_to_do(prepared.title)
            return outcome

        if dry_run:
            return outcome

        packages, error = await self.produce(prepared)
        outcome.packages = packages
        if error:
            outcome.errors.append(error)

        payload = assemble_submission(
            packages,
            prepared.edition,
            prepared.group.group_id,
        )
        if payload is None:
            # everything that was planned failed
            outcome.status = ReleaseStatus.FAILED
            self.notifier.notify_error("No files made", context=prepared.title)
            return outcome

        if error:
            logger.warning(
                "Uploading %d of %d planned variants",
                len(packages),
                len(prepared.plan.variants),
            )

        outcome.response = await self.submit(payload)
        outcome.status = ReleaseStatus.UPLOADED
        logger.info("Done! %s", outcome.response)
        self.notifier.notify_upload_complete(
            prepared.title,
            [package.label for package in packages],
        )
        return outcome

    async def submit(self, payload: SubmissionPayload) -> dict[str, Any]:
        return await self.catalogue.upload(payload)

    async def process_batch(
        self,
        release_dirs: Iterable[Path],
        *,
        dry_run: bool = False,
    ) -> list[ReleaseOutcome]:
        """Process releases strictly one after another.

        A failing release never stops the ones after it.
        """
        outcomes = []
        for release_dir in release_dirs:
            release_dir = Path(release_dir)
            logger.info("Processing %s", release_dir)
            try:
                outcome = await self.process_release(release_dir, dry_run=dry_run)
            except SourceMismatch as e:
                logger.info("%s: %s, not interested", release_dir, e.message)
                outcome = ReleaseOutcome(release_dir, ReleaseStatus.SKIPPED, errors=[e])
            except ValidationFailure as e:
                logger.error("%s (%s)", e.message, e.details)
                outcome = ReleaseOutcome(release_dir, ReleaseStatus.INVALID, errors=[e])
            except RedculError as e:
                logger.error("%s: %s", release_dir, e.message)
                outcome = ReleaseOutcome(release_dir, ReleaseStatus.FAILED, errors=[e])
                if not dry_run:
                    self.notifier.notify_error(e.message, context=str(release_dir))
            except Exception as e:
                logger.exception("Unexpected error processing %s", release_dir)
                outcome = ReleaseOutcome(release_dir, ReleaseStatus.FAILED, errors=[e])
                if not dry_run:
                    self.notifier.notify_error(str(e), context=str(release_dir))
            outcomes.append(outcome)

        if len(outcomes) > 1 and not dry_run:
            statuses = [outcome.status for outcome in outcomes]
            self.notifier.notify_batch_completed(
                uploaded=statuses.count(ReleaseStatus.UPLOADED),
                failed=statuses.count(ReleaseStatus.FAILED)
                + statuses.count(ReleaseStatus.INVALID),
                skipped=statuses.count(ReleaseStatus.SKIPPED)
                + statuses.count(ReleaseStatus.NOTHING_TO_DO),
            )
        return outcomes
