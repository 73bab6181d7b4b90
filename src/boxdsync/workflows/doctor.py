from __future__ import annotations

import importlib.util
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .settings import ENV_PREFIX, FieldPolicy


def _module_available(name: str) -> bool:
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


def _vault_writable(vault: Path) -> bool:
    # A missing vault is fine as long as `import` can create it.
    target = vault if vault.exists() else vault.parent
    try:
        return target.is_dir() and os.access(target, os.W_OK)
    except OSError:
        return False


def build_doctor_report(*, vault: Optional[Path] = None) -> Dict[str, Any]:
    stamp = datetime.now(timezone.utc).replace(microsecond=0)
    checks: List[Dict[str, Any]] = []
    report: Dict[str, Any] = {"generated_at": stamp.isoformat().replace("+00:00", "Z"), "ok": True, "checks": checks}

    def add_check(name: str, passed: bool, *, level: str = "warn", **extra: Optional[str]) -> None:
        entry: Dict[str, Any] = {"name": name, "status": "ok" if passed else "missing", "level": level}
        entry.update({key: val for key, val in extra.items() if val is not None})
        checks.append(entry)
        if level == "warn" and not passed:
            report["ok"] = False

    lxml_ok = _module_available("lxml")
    add_check(
        "lxml",
        lxml_ok,
        detail="Fast HTML parser available" if lxml_ok else "Falling back to html.parser",
        remedy="pip install lxml",
        level="info",
    )

    template_path = os.getenv(f"{ENV_PREFIX}TEMPLATE_PATH", "").strip()
    if template_path:
        template_exists = Path(template_path).expanduser().is_file()
        add_check(
            f"{ENV_PREFIX}TEMPLATE_PATH",
            template_exists,
            detail="Custom note template" if template_exists else "Template file not found",
            remedy="Point the variable at a readable template file or unset it.",
            value=template_path,
        )
    else:
        add_check(f"{ENV_PREFIX}TEMPLATE_PATH", True, detail="Built-in note layout", level="info")

    excluded = os.getenv(f"{ENV_PREFIX}EXCLUDE_FIELDS", "")
    if excluded.strip():
        try:
            FieldPolicy.excluding(excluded.split(","))
            add_check(f"{ENV_PREFIX}EXCLUDE_FIELDS", True, detail="Field exclusions recognized", value=excluded)
        except ValueError as exc:
            add_check(
                f"{ENV_PREFIX}EXCLUDE_FIELDS",
                False,
                detail=str(exc),
                remedy="Use description, directors, genres, cast, average_rating, studios or countries.",
                value=excluded,
            )

    if vault is not None:
        writable = _vault_writable(vault.expanduser())
        add_check(
            "vault",
            writable,
            detail=str(vault),
            remedy="Create the vault directory or pick a writable location.",
        )

    return report


def format_doctor_report(report: Dict[str, Any]) -> str:
    lines: List[str] = ["boxdsync doctor", f"Generated: {report.get('generated_at')}", ""]
    for check in report.get("checks", []):
        suffix = f" ({check['value']})" if check.get("value") else ""
        lines.append(f"- [{check.get('level', 'info')}] {check.get('name', 'check')}: {check.get('status')}{suffix}")
        if check.get("detail"):
            lines.append(f"  detail: {check['detail']}")
        if check.get("remedy") and check.get("status") != "ok":
            lines.append(f"  remedy: {check['remedy']}")
    verdict = "all checks passed" if report.get("ok", True) else "some checks need attention"
    lines.append("")
    lines.append(f"Result: {verdict}")
    return "\n".join(lines) + "\n"
