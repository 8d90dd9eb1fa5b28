"""
Diff Parser（非 AI，尽力而为）。

把整段 unified diff 切成按文件划分的 `FileChange` 列表：
- 只识别文件头（`diff --git`）与 new/deleted 标记，不做 hunk 级解析
- 对不规范的 diff 不抛错，尽量给出结果
"""

from __future__ import annotations

from pr_reviewer.review.models import ChangeType
from pr_reviewer.review.models import FileChange

_FILE_HEADER = "diff --git"
_UNKNOWN_PATH = "<unknown>"


def parse_diff(diff: str) -> list[FileChange]:
    """
    逐行扫描 diff，返回按出现顺序排列的文件变更。

    - 第一个文件头之前的内容会被丢弃
    - 没有 new/deleted 标记的文件默认是 `modified`
    - 文件头数量 == 输出记录数量
    """
    changes: list[FileChange] = []
    path = ""
    content: list[str] = []
    change_type: ChangeType = "modified"

    for line in diff.split("\n"):
        if line.startswith(_FILE_HEADER):
            if path:
                changes.append(FileChange(path=path, content="".join(content), type=change_type))
            path = _path_from_header(header=line)
            content = []
            change_type = "modified"
        elif line.startswith("new file"):
            change_type = "added"
        elif line.startswith("deleted file"):
            change_type = "deleted"
        else:
            content.append(line + "\n")

    if path:
        changes.append(FileChange(path=path, content="".join(content), type=change_type))
    return changes


def _path_from_header(header: str) -> str:
    # diff --git a/<path> b/<path>
    tokens = header.split(" ")
    if len(tokens) > 2 and tokens[2]:
        return tokens[2].removeprefix("a/") or _UNKNOWN_PATH
    rest = header[len(_FILE_HEADER) :].strip()
    return rest or _UNKNOWN_PATH
