"""
Filesystem adapter — file placement with receipts.

Covers the file work a provisioning pass does outside the channel
document: writing launcher entries, copying icon and font trees out of
a clone, and unpacking theme archives.
"""

from __future__ import annotations

import logging
import shutil
import tarfile
from pathlib import Path

from deskprov.adapters.base import Adapter, ExecutionContext
from deskprov.core.models.action import Receipt

logger = logging.getLogger(__name__)

_REQUIRED = {
    "write": ("path", "content"),
    "copytree": ("source", "path"),
    "copy_glob": ("source", "pattern", "path"),
    "extract": ("source", "path"),
}


class FilesystemAdapter(Adapter):
    """File and directory operations.

    Action params:
        operation (str): One of 'write', 'copytree', 'copy_glob', 'extract'.
        path (str): Target path (relative to the working dir or absolute).
        content (str): Text to write (write).
        source (str): Source directory or archive (copytree, copy_glob, extract).
        pattern (str): Glob matched inside ``source`` (copy_glob).
    """

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in _REQUIRED:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_REQUIRED))}"

        for key in _REQUIRED[operation]:
            value = params.get(key)
            # empty content is a valid (empty) file
            if value is None or (value == "" and key != "content"):
                return False, f"Missing required param: '{key}' for {operation} operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        op = context.action.params["operation"]
        target = self._resolve(context, context.action.params["path"])
        handler = {
            "write": self._write,
            "copytree": self._copytree,
            "copy_glob": self._copy_glob,
            "extract": self._extract,
        }[op]

        try:
            return handler(context, target)
        except (OSError, tarfile.TarError) as e:
            logger.debug("%s %s failed", op, target, exc_info=True)
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"{op} {target}: {e}",
                metadata={"operation": op, "path": str(target)},
            )

    def _resolve(self, ctx: ExecutionContext, raw: str) -> Path:
        path = Path(raw).expanduser()
        if not path.is_absolute():
            path = Path(ctx.cwd) / path
        return path

    def _write(self, ctx: ExecutionContext, target: Path) -> Receipt:
        text = ctx.action.params["content"]
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Wrote {target}",
            metadata={"path": str(target), "bytes": len(text.encode("utf-8"))},
        )

    def _copytree(self, ctx: ExecutionContext, target: Path) -> Receipt:
        source = self._resolve(ctx, ctx.action.params["source"])
        if not source.is_dir():
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Not a directory: {source}",
            )
        shutil.copytree(source, target, dirs_exist_ok=True)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Copied {source} to {target}",
            metadata={"source": str(source), "path": str(target)},
        )

    def _copy_glob(self, ctx: ExecutionContext, target: Path) -> Receipt:
        source = self._resolve(ctx, ctx.action.params["source"])
        pattern = ctx.action.params["pattern"]
        matches = sorted(p for p in source.glob(pattern) if p.is_file())
        if not matches:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"No files matching '{pattern}' in {source}",
            )
        target.mkdir(parents=True, exist_ok=True)
        for match in matches:
            shutil.copy2(match, target / match.name)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Copied {len(matches)} file(s) to {target}",
            metadata={"path": str(target), "count": len(matches)},
        )

    def _extract(self, ctx: ExecutionContext, target: Path) -> Receipt:
        archive = self._resolve(ctx, ctx.action.params["source"])
        if not archive.is_file():
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Archive not found: {archive}",
            )
        target.mkdir(parents=True, exist_ok=True)
        with tarfile.open(archive, "r:*") as tar:
            members = tar.getmembers()
            root = target.resolve()
            for member in members:
                dest = (target / member.name).resolve()
                if dest != root and root not in dest.parents:
                    return Receipt.failure(
                        adapter=self.name,
                        action_id=ctx.action.id,
                        error=f"Archive member escapes destination: {member.name}",
                    )
            tar.extractall(target, filter="data")
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Extracted {len(members)} member(s) from {archive.name} to {target}",
            metadata={"archive": str(archive), "path": str(target), "count": len(members)},
        )
