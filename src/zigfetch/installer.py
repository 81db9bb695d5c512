"""
Install coordinator.

Runs one install from target selection to unpacked toolchain:
select target -> fetch manifest -> resolve -> download -> confirm destination ->
extract (or leave the artifact staged). Every step runs once, in order; any
failure stops the run and is raised to the caller.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

import requests

from zigfetch.config import Settings
from zigfetch.download import download_artifact
from zigfetch.exceptions import ZigfetchError
from zigfetch.extract import extract_archive
from zigfetch.log_utils import logger
from zigfetch.manifest import ManifestCache, fetch_manifest
from zigfetch.menu import Prompter
from zigfetch.progress import ProgressStyle
from zigfetch.resolver import resolve
from zigfetch.targets import InstallTarget
from zigfetch.utils import create_session


class InstallState(Enum):
    SELECTING_TARGET = "selecting-target"
    FETCHING_MANIFEST = "fetching-manifest"
    RESOLVING = "resolving"
    DOWNLOADING = "downloading"
    CONFIRMING_DESTINATION = "confirming-destination"
    EXTRACTING = "extracting"
    STAGED_ONLY = "staged-only"
    DONE = "done"
    FAILED = "failed"


# Forward-only transitions; FAILED is reachable from any non-terminal state
_TRANSITIONS = {
    InstallState.SELECTING_TARGET: (InstallState.FETCHING_MANIFEST,),
    InstallState.FETCHING_MANIFEST: (InstallState.RESOLVING,),
    InstallState.RESOLVING: (InstallState.DOWNLOADING,),
    InstallState.DOWNLOADING: (InstallState.CONFIRMING_DESTINATION,),
    InstallState.CONFIRMING_DESTINATION: (
        InstallState.EXTRACTING,
        InstallState.STAGED_ONLY,
    ),
    InstallState.EXTRACTING: (InstallState.DONE,),
    InstallState.STAGED_ONLY: (InstallState.DONE,),
    InstallState.DONE: (),
    InstallState.FAILED: (),
}


@dataclass(frozen=True)
class InstallDestination:
    path: Path
    exists: bool

    @classmethod
    def from_path(cls, path: Path) -> "InstallDestination":
        return cls(path=path, exists=path.is_dir())


@dataclass
class InstallResult:
    target: InstallTarget
    tarball_url: str
    staged_file: Path
    destination: Optional[Path] = None
    extracted_entries: List[str] = field(default_factory=list)

    @property
    def extracted(self) -> bool:
        return self.destination is not None


class InstallCoordinator:
    """
    Orchestrates a single install run.

    Parameters:
        settings (Settings): Resolved configuration for this run.
        prompter (Prompter | None): Source of interactive answers.
        session (requests.Session | None): HTTP session shared by the manifest fetch
            and the download; a retrying session is created per run when omitted.
        style (ProgressStyle | None): Progress display settings.
        assume_yes (bool): Accept the default destination without asking.
    """

    def __init__(
        self,
        settings: Settings,
        prompter: Optional[Prompter] = None,
        session: Optional[requests.Session] = None,
        style: Optional[ProgressStyle] = None,
        assume_yes: bool = False,
    ):
        self.settings = settings
        self.prompter = prompter or Prompter()
        self.session = session
        self.style = style or ProgressStyle()
        self.assume_yes = assume_yes
        self.state = InstallState.SELECTING_TARGET

    def _advance(self, new_state: InstallState) -> None:
        if new_state is not InstallState.FAILED and new_state not in _TRANSITIONS[
            self.state
        ]:
            raise RuntimeError(
                f"Invalid install transition {self.state.name} -> {new_state.name}"
            )
        logger.debug(f"Install state: {self.state.name} -> {new_state.name}")
        self.state = new_state

    def run(self, target: Optional[InstallTarget] = None) -> InstallResult:
        """
        Execute the install flow once.

        Parameters:
            target (InstallTarget | None): Platform to install; asked interactively
                when None.

        Returns:
            InstallResult: What was downloaded and, unless the user declined the
            destination, where it was unpacked.

        Raises:
            ZigfetchError: Any failure (including UserCancelled) from a step; the
            coordinator is left in the FAILED state.
        """
        owns_session = self.session is None
        session = self.session or create_session()
        try:
            return self._run(target, session)
        except ZigfetchError:
            self._advance(InstallState.FAILED)
            raise
        finally:
            if owns_session:
                session.close()

    def _run(
        self, target: Optional[InstallTarget], session: requests.Session
    ) -> InstallResult:
        settings = self.settings
        if target is None:
            target = self.prompter.select_target()

        self._advance(InstallState.FETCHING_MANIFEST)
        cache = ManifestCache() if settings.use_manifest_cache else None
        manifest = fetch_manifest(settings.manifest_url, session=session, cache=cache)

        self._advance(InstallState.RESOLVING)
        descriptor = resolve(manifest, target, settings.channel)
        channel = manifest.channel(settings.channel)
        version = channel.version if channel and channel.version else settings.channel
        logger.info(f"Installing Zig {version} for {target.platform_key}")

        self._advance(InstallState.DOWNLOADING)
        staged_file = download_artifact(
            descriptor,
            settings.staging_dir,
            self.style,
            session=session,
            require_content_length=settings.require_content_length,
            verify=settings.verify_checksum,
        )
        result = InstallResult(
            target=target, tarball_url=descriptor.tarball, staged_file=staged_file
        )

        self._advance(InstallState.CONFIRMING_DESTINATION)
        destination = InstallDestination.from_path(settings.install_dir)
        if not destination.exists:
            logger.debug(f"{destination.path} does not exist yet; it will be created")
        if not (self.assume_yes or self.prompter.confirm_destination(destination.path)):
            self._advance(InstallState.STAGED_ONLY)
            logger.info(f"Not unpacking. You can find the archive at {staged_file}")
            self._advance(InstallState.DONE)
            return result

        self._advance(InstallState.EXTRACTING)
        result.extracted_entries = extract_archive(
            staged_file, destination.path, self.style
        )
        result.destination = destination.path
        self._advance(InstallState.DONE)
        logger.info(f"Zig {version} installed to {destination.path}")
        return result
