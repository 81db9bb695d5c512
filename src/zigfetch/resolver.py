# src/zigfetch/resolver.py

from zigfetch.constants import DEFAULT_CHANNEL
from zigfetch.exceptions import UnsupportedTargetError
from zigfetch.log_utils import logger
from zigfetch.manifest import ArtifactDescriptor, ReleaseManifest
from zigfetch.targets import InstallTarget


def resolve(
    manifest: ReleaseManifest,
    target: InstallTarget,
    channel: str = DEFAULT_CHANNEL,
) -> ArtifactDescriptor:
    """
    Look up the artifact for `target` in one channel of the release index.

    Raises:
        UnsupportedTargetError: If the channel is missing or has no entry for the
        target's platform key.
    """
    key = target.platform_key
    entry = manifest.channel(channel)
    if entry is None:
        raise UnsupportedTargetError(key, channel)

    descriptor = entry.artifacts.get(key)
    if descriptor is None:
        raise UnsupportedTargetError(key, channel)

    logger.debug(f"Resolved {key} ({channel}) to {descriptor.tarball}")
    return descriptor
