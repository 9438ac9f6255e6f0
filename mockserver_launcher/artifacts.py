from __future__ import annotations

import glob
from pathlib import Path

import httpx

from mockserver_launcher.errors import ArtifactAcquisitionError
from mockserver_launcher.logging_config import get_logger
from mockserver_launcher.utils.semver import find_best_version, parse_version, parse_version_from_jar

log = get_logger(__name__)

JAR_GLOB = "**/mockserver-netty-*-jar-with-dependencies.jar"


def jar_filename(version: str) -> str:
    return f"mockserver-netty-{version}-jar-with-dependencies.jar"


def jar_url(version: str, artifact_host: str, artifact_path: str) -> str:
    base = artifact_host if "://" in artifact_host else f"https://{artifact_host}"
    path = artifact_path if artifact_path.endswith("/") else f"{artifact_path}/"
    if not path.startswith("/"):
        path = f"/{path}"
    return f"{base.rstrip('/')}{path}{version}/{jar_filename(version)}"


def find_jar(base_path: Path, version: str | None = None) -> Path:
    """Find a mockserver-netty jar below `base_path`.

    With `version`, only that exact version is accepted. Without it, the
    newest release wins, falling back to the newest snapshot.
    """
    matches = glob.glob(str(base_path / JAR_GLOB), recursive=True)
    versioned = [
        (Path(match), v)
        for match in matches
        if (v := parse_version_from_jar(Path(match).name)) is not None
    ]

    if not versioned:
        raise FileNotFoundError(f"No mockserver-netty jar found in {base_path} matching '{JAR_GLOB}'")

    if version is not None:
        wanted = parse_version(version)
        for path, v in versioned:
            if v == wanted:
                return path
        raise FileNotFoundError(f"No mockserver-netty {version} jar found in {base_path}")

    best = find_best_version([v for _, v in versioned])
    for path, v in versioned:
        if v == best:
            return path

    raise FileNotFoundError(f"Could not resolve a mockserver-netty jar in {base_path}")


async def download_jar(client: httpx.AsyncClient, url: str, destination: Path) -> Path:
    destination.parent.mkdir(parents=True, exist_ok=True)
    partial = destination.with_name(destination.name + ".part")

    log.info("Downloading MockServer jar", url=url, destination=str(destination))
    try:
        async with client.stream("GET", url, follow_redirects=True) as response:
            response.raise_for_status()
            with partial.open("wb") as f:
                async for chunk in response.aiter_bytes():
                    f.write(chunk)
        partial.replace(destination)
    except (httpx.HTTPError, OSError) as e:
        partial.unlink(missing_ok=True)
        raise ArtifactAcquisitionError(f"Failed to download {url}: {e}") from e

    log.info("Downloaded MockServer jar", destination=str(destination), size=destination.stat().st_size)
    return destination


async def ensure_jar(
    client: httpx.AsyncClient,
    version: str,
    artifact_host: str,
    artifact_path: str,
    dest_dir: Path,
) -> Path:
    """Return a local jar for `version`, downloading it first if needed."""
    if parse_version(version) is None:
        raise ArtifactAcquisitionError(f"Invalid MockServer version: {version!r}")

    try:
        jar = find_jar(dest_dir, version)
        log.debug("Using cached MockServer jar", jar=str(jar))
        return jar
    except FileNotFoundError:
        pass

    url = jar_url(version, artifact_host, artifact_path)
    return await download_jar(client, url, dest_dir / jar_filename(version))
