"""README summary document for a published archive."""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from archive_publisher.entities import FileRecord
from archive_publisher.services.archive.statistics import compute_statistics
from archive_publisher.utils.files import format_file_size

README_PATH = "README.md"
README_COMMIT_MESSAGE = "Add README.md"

_Tree = Dict[str, Optional["_Tree"]]


def _build_tree(paths: Iterable[str]) -> _Tree:
    tree: _Tree = {}
    for path in paths:
        parts = path.split("/")
        level = tree
        for index, part in enumerate(parts):
            is_leaf = index == len(parts) - 1
            if is_leaf:
                level.setdefault(part, None)
            else:
                if level.get(part) is None:
                    level[part] = {}
                level = level[part]
    return tree


def _render(tree: _Tree, prefix: str) -> List[str]:
    lines: List[str] = []
    entries = list(tree.items())
    for index, (name, children) in enumerate(entries):
        is_last = index == len(entries) - 1
        lines.append(f"{prefix}{'└── ' if is_last else '├── '}{name}")
        if children is not None:
            lines.extend(_render(children, prefix + ("    " if is_last else "│   ")))
    return lines


def render_directory_tree(paths: Iterable[str]) -> str:
    """
    Render paths as an ASCII tree, preserving first-seen order.

    >>> print(render_directory_tree(["src/a.py", "README.md"]))
    ├── src
    │   └── a.py
    └── README.md
    """
    return "\n".join(_render(_build_tree(paths), ""))


def build_readme(
    repo_name: str,
    files: Sequence[FileRecord],
    generated_at: Optional[datetime] = None,
) -> str:
    """Markdown summary: statistics, type distribution and directory tree."""
    stats = compute_statistics(files)
    timestamp = (generated_at or datetime.now(timezone.utc)).isoformat()

    distribution = sorted(stats.file_types.items(), key=lambda item: (-item[1], item[0]))
    type_lines = "\n".join(f"- **{ext}**: {count} files" for ext, count in distribution)
    tree = render_directory_tree(record.path for record in files)

    return f"""# {repo_name}

> This repository was created automatically from an uploaded archive.

## Repository statistics

- **Total files**: {stats.total_files}
- **Total size**: {format_file_size(stats.total_size)}
- **Created at**: {timestamp}
- **File types**: {len(stats.file_types)}

## File type distribution

{type_lines}

## Directory structure

```
{tree}
```

## Generation info

- **Workflow**: archive to GitHub
- **Source archive**: {repo_name}.zip

---

*This file was generated automatically; edits may be overwritten on the next publication.*
"""


def build_readme_record(
    repo_name: str,
    files: Sequence[FileRecord],
    generated_at: Optional[datetime] = None,
) -> FileRecord:
    content = build_readme(repo_name, files, generated_at).encode("utf-8")
    return FileRecord.from_bytes(README_PATH, content, last_modified=generated_at)
