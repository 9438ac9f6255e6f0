import re
from dataclasses import dataclass

JAR_VERSION_PATTERN = re.compile(
    r"mockserver-netty-(\d+)\.(\d+)\.(\d+)(-SNAPSHOT)?-jar-with-dependencies\.jar$",
)


@dataclass(frozen=True)
class Version:
    major: int
    minor: int
    patch: int
    is_snapshot: bool = False

    def __lt__(self, other: "Version") -> bool:
        if (self.major, self.minor, self.patch) != (other.major, other.minor, other.patch):
            return (self.major, self.minor, self.patch) < (other.major, other.minor, other.patch)

        # a snapshot precedes the release it leads up to
        return self.is_snapshot and not other.is_snapshot

    def __le__(self, other: "Version") -> bool:
        return self == other or self < other

    def __gt__(self, other: "Version") -> bool:
        return not self <= other

    def __ge__(self, other: "Version") -> bool:
        return not self < other

    def __str__(self) -> str:
        suffix = "-SNAPSHOT" if self.is_snapshot else ""
        return f"{self.major}.{self.minor}.{self.patch}{suffix}"


def parse_version(text: str) -> Version | None:
    """Parse `3.10.8` or `5.0.0-SNAPSHOT`."""
    match = re.fullmatch(r"(\d+)\.(\d+)\.(\d+)(-SNAPSHOT)?", text.strip())
    if not match:
        return None

    major, minor, patch, snapshot = match.groups()
    return Version(int(major), int(minor), int(patch), is_snapshot=snapshot is not None)


def parse_version_from_jar(filename: str) -> Version | None:
    """Parse the version out of a mockserver-netty jar filename.

    Examples:
    - mockserver-netty-3.10.8-jar-with-dependencies.jar
    - /cache/mockserver-netty-5.0.0-SNAPSHOT-jar-with-dependencies.jar
    """
    match = JAR_VERSION_PATTERN.search(filename)
    if not match:
        return None

    major, minor, patch, snapshot = match.groups()
    return Version(int(major), int(minor), int(patch), is_snapshot=snapshot is not None)


def find_best_version(versions: list[Version]) -> Version | None:
    """Newest release, or the newest snapshot when there is no release."""
    if not versions:
        return None

    releases = [v for v in versions if not v.is_snapshot]
    if releases:
        return max(releases)

    return max(versions)
