"""Example usage of the cachediff decorator."""

from dataclasses import dataclass
from pathlib import Path

from cachediff import cache_diff, diff_field, generate_source


@cache_diff
@dataclass
class Metadata:
    version: str
    distro: str


def diff_os(old: "RubyMetadata", now: "RubyMetadata") -> list[str]:
    """Report distribution name and version together as one entry."""
    previous = f"{old.distro_name} {old.distro_version}"
    current = f"{now.distro_name} {now.distro_version}"
    if previous == current:
        return []
    return [f"OS ({now.fmt_value(previous)} to {now.fmt_value(current)})"]


def short_sha(value: str) -> str:
    return value[:7]


@cache_diff('custom = diff_os')
@dataclass
class RubyMetadata:
    ruby_version: str = diff_field('rename = "Ruby version"')
    distro_name: str = diff_field('ignore = "custom"')
    distro_version: str = diff_field('ignore = "custom"')
    checksum: str = diff_field('display = short_sha')
    install_dir: Path = Path("/layers/ruby")
    modified_by: str = diff_field('ignore = "informational only"', default="")


if __name__ == "__main__":
    old = RubyMetadata(
        ruby_version="3.3.0",
        distro_name="ubuntu",
        distro_version="22.04",
        checksum="4f6b1a2c9d0e7f81",
        install_dir=Path("/layers/ruby"),
        modified_by="build 41",
    )
    now = RubyMetadata(
        ruby_version="3.4.0",
        distro_name="ubuntu",
        distro_version="24.04",
        checksum="9a1e55b3c7d2e014",
        install_dir=Path("/layers/ruby-3.4"),
        modified_by="build 42",
    )

    print("Generated procedure:")
    print(generate_source(RubyMetadata))

    differences = now.diff(old)
    if differences:
        print("Cache invalidated:")
        for difference in differences:
            print(f"  - {difference}")
    else:
        print("Cache is still valid")
