"""Text and JSON renderings of a discovery result.

The text form always prints every section and every framework category, with
"None detected" for empty ones, so its shape does not depend on the
repository.
"""

from __future__ import annotations

import json

from shipshape.discovery.models import FrameworkType, Repository

BULLET = "•"


def render_json(repo: Repository, *, indent: int | None = 2) -> str:
    return json.dumps(repo.to_dict(), indent=indent)


def render_text(repo: Repository) -> str:
    lines: list[str] = [
        f"Repository: {repo.root}",
        f"Total Files: {repo.total_files}",
        "",
    ]

    if repo.languages:
        lines.append("Languages:")
        for lang in repo.languages:
            primary = " (primary)" if lang.is_primary else ""
            lines.append(
                f"  {BULLET} {lang.name}: {lang.percentage:.2f}% ({lang.file_count} files){primary}"
            )
    else:
        lines.append("Languages: None detected")
    lines.append("")

    lines.append("Frameworks & Tools:")
    for framework_type in FrameworkType:
        found = repo.frameworks_by_type(framework_type)
        if not found:
            lines.append(f"  {framework_type.heading}: None detected")
            continue
        lines.append(f"  {framework_type.heading}:")
        for fw in found:
            version = f" {fw.version}" if fw.version else ""
            lines.append(f"    {BULLET} {fw.name}{version} ({fw.language})")
    lines.append("")

    workspace = repo.workspace
    if workspace is None:
        lines.append("Workspace: None detected")
    else:
        lines.append("Workspace:")
        lines.append(f"  Format: {workspace.format.value}")
        lines.append(f"  Config: {workspace.config_file}")
        if workspace.packages:
            lines.append(f"  Packages ({len(workspace.packages)}):")
            for pkg in workspace.packages:
                language = f" [{pkg.language}]" if pkg.language else ""
                lines.append(f"    {BULLET} {pkg.name} ({pkg.path}){language}")
        else:
            lines.append("  Packages: None resolved")

    if repo.warnings:
        lines.append("")
        lines.append(f"Warnings ({len(repo.warnings)}):")
        for warning in repo.warnings:
            lines.append(f"  ! {warning}")

    return "\n".join(lines)
