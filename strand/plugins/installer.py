"""Concurrent plugin download and extraction.

The PluginInstaller is responsible for:
- Resolving each plugin spec to its archive URL
- Downloading all archives concurrently over one HTTP client
- Unpacking each ``.tar.gz`` into the plugin directory
- Applying the failure policy and aggregating results
"""

from __future__ import annotations

import asyncio
import contextlib
import io
import logging
import tarfile
import zlib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Callable, Optional, Sequence

import httpx

from strand import __app_name__, __version__
from strand.exceptions import ExtractionError, FetchError, InstallError, StrandError
from strand.plugins.models import PluginSpec, resolve_url

logger = logging.getLogger(__name__)


class FailurePolicy(Enum):
    """How the installer reacts when a plugin fails."""

    FAIL_FAST = "fail-fast"  # raise the first error, cancel the rest
    COLLECT = "collect"      # finish every plugin, then report all failures


@dataclass
class InstallResult:
    """Outcome of installing a single plugin.

    Attributes:
        plugin: The plugin spec that was installed
        url: Resolved download URL
        success: Whether download and extraction both succeeded
        size: Downloaded archive size in bytes
        roots: Top-level entries the archive extracted
        error: The failure, when ``success`` is False
    """

    plugin: PluginSpec
    url: str
    success: bool
    size: int = 0
    roots: list[str] = field(default_factory=list)
    error: Optional[StrandError] = None


@dataclass
class InstallSummary:
    """Results of an install run, in configuration order."""

    results: list[InstallResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[InstallResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[InstallResult]:
        return [r for r in self.results if not r.success]

    @property
    def all_successful(self) -> bool:
        return all(r.success for r in self.results)


ResultCallback = Callable[[InstallResult], None]


def _top_level(name: str) -> str:
    parts = [part for part in PurePosixPath(name).parts if part != "/"]
    return parts[0] if parts else ""


class PluginInstaller:
    """Installs a list of plugins into a directory concurrently.

    One task is started per plugin. Without ``max_concurrent`` all of them
    download at once; with it, an ``asyncio.Semaphore`` bounds the number
    of in-flight installs.

    Example:
        installer = PluginInstaller(Path("~/.local/share/strand/plugins"))
        summary = await installer.install_all(config.plugins)
    """

    def __init__(
        self,
        plugin_dir: Path,
        max_concurrent: Optional[int] = None,
        policy: FailurePolicy = FailurePolicy.FAIL_FAST,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_installed: Optional[ResultCallback] = None,
        on_failed: Optional[ResultCallback] = None,
    ) -> None:
        """Initialize the installer.

        Args:
            plugin_dir: Directory archives are extracted into
            max_concurrent: Maximum simultaneous installs (None for unbounded)
            policy: Failure policy for the batch
            timeout: HTTP timeout in seconds (None disables timeouts)
            transport: Optional httpx transport, mainly for tests
            on_installed: Called after each successful install
            on_failed: Called after each failed install
        """
        if max_concurrent is not None and max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.plugin_dir = plugin_dir
        self.max_concurrent = max_concurrent
        self.policy = policy
        self.timeout = timeout
        self._transport = transport
        self._on_installed = on_installed
        self._on_failed = on_failed

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            follow_redirects=True,
            timeout=httpx.Timeout(self.timeout),
            headers={"User-Agent": f"{__app_name__}/{__version__}"},
            transport=self._transport,
        )

    async def fetch(self, client: httpx.AsyncClient, url: str) -> bytes:
        """Download ``url`` and return the response body.

        Raises:
            FetchError: On connection failure or an HTTP error status, or a
                URL httpx cannot parse
        """
        logger.debug(f"Fetching {url}")
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise FetchError(
                f"download failed with HTTP {status}",
                url=url,
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"download failed: {e}", url=url) from e
        except (httpx.InvalidURL, ValueError) as e:
            raise FetchError(f"invalid URL: {e}", url=url) from e
        return response.content

    def extract(self, archive: bytes) -> list[str]:
        """Unpack a gzip-compressed tarball into the plugin directory.

        Entries keep the paths stored in the archive; nothing is renamed,
        so archives sharing a top-level folder overwrite each other.

        Members the ``data`` extraction filter refuses (absolute paths,
        ``..`` components, links pointing outside the plugin directory,
        device files) fail the whole archive.

        Returns:
            Sorted top-level names contained in the archive

        Raises:
            ExtractionError: If the archive is malformed, contains a refused
                member, or cannot be written
        """
        try:
            with tarfile.open(fileobj=io.BytesIO(archive), mode="r:gz") as tar:
                roots = {_top_level(member.name) for member in tar.getmembers()}
                tar.extractall(self.plugin_dir, filter="data")
        except tarfile.FilterError as e:
            member = e.tarinfo.name
            raise ExtractionError(
                f"refusing to extract {member!r}: {e}",
                details={"member": member},
            ) from e
        except (tarfile.TarError, OSError, EOFError, zlib.error) as e:
            raise ExtractionError(f"could not extract archive: {e}") from e
        return sorted(root for root in roots if root)

    async def install_plugin(
        self,
        plugin: PluginSpec,
        client: httpx.AsyncClient,
    ) -> InstallResult:
        """Download and extract one plugin.

        Raises:
            FetchError: If the download fails
            ExtractionError: If the archive cannot be unpacked
        """
        url = resolve_url(plugin)
        archive = await self.fetch(client, url)
        logger.debug(f"Downloaded {len(archive)} bytes for {plugin}")

        try:
            # tarfile is blocking; keep sibling downloads moving
            roots = await asyncio.to_thread(self.extract, archive)
        except ExtractionError as e:
            e.details.setdefault("plugin", str(plugin))
            raise

        result = InstallResult(
            plugin=plugin,
            url=url,
            success=True,
            size=len(archive),
            roots=roots,
        )
        logger.info(f"Installed {plugin}")
        if self._on_installed:
            self._on_installed(result)
        return result

    async def _run_one(
        self,
        plugin: PluginSpec,
        client: httpx.AsyncClient,
        semaphore: Optional[asyncio.Semaphore],
    ) -> InstallResult:
        async with semaphore or contextlib.nullcontext():
            try:
                return await self.install_plugin(plugin, client)
            except StrandError as e:
                logger.error(f"Failed to install {plugin}: {e}")
                result = InstallResult(
                    plugin=plugin,
                    url=resolve_url(plugin),
                    success=False,
                    error=e,
                )
                if self._on_failed:
                    self._on_failed(result)
                if self.policy is FailurePolicy.FAIL_FAST:
                    raise
                return result

    async def install_all(self, plugins: Sequence[PluginSpec]) -> InstallSummary:
        """Install every plugin concurrently.

        With ``FailurePolicy.FAIL_FAST`` the first error is raised once the
        remaining tasks have been cancelled and awaited. Cancellation stops
        pending downloads; an extraction already running in its worker
        thread cannot be interrupted and finishes writing in the background.

        With ``FailurePolicy.COLLECT`` every plugin is attempted and an
        ``InstallError`` carrying the summary is raised if any of them failed.

        Args:
            plugins: Plugin specs in configuration order

        Returns:
            InstallSummary with one result per plugin, in input order
        """
        if not plugins:
            logger.info("No plugins configured")
            return InstallSummary()

        semaphore = (
            asyncio.Semaphore(self.max_concurrent) if self.max_concurrent else None
        )
        logger.info(
            f"Installing {len(plugins)} plugin(s) into {self.plugin_dir} "
            f"(max_concurrent={self.max_concurrent or 'unbounded'}, "
            f"policy={self.policy.value})"
        )

        async with self._create_client() as client:
            tasks = [
                asyncio.create_task(
                    self._run_one(plugin, client, semaphore),
                    name=f"install {plugin}",
                )
                for plugin in plugins
            ]
            try:
                results = await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

        summary = InstallSummary(results=list(results))
        if not summary.all_successful:
            raise InstallError(
                f"{len(summary.failed)} of {len(summary.results)} plugin(s) failed to install",
                summary,
            )
        return summary


def install_plugins(
    plugins: Sequence[PluginSpec],
    plugin_dir: Path,
    **kwargs,
) -> InstallSummary:
    """Synchronous entry point wrapping ``PluginInstaller.install_all``.

    Args:
        plugins: Plugin specs to install
        plugin_dir: Target directory (expected to be empty)
        **kwargs: Forwarded to ``PluginInstaller``
    """
    installer = PluginInstaller(plugin_dir, **kwargs)
    return asyncio.run(installer.install_all(plugins))
