import json
import math
from typing import Any

from .brew_errors import ParseError
from .brew_line_parser import decode_output
from .brew_types import FormulaDetail, InstalledReceipt, PackageSummary, VersionInfo


def _load_formulae(data: bytes | str) -> list[Any]:
    """Decodes `brew info --json=v2` output and returns the `formulae` list.

    This is the strict pass: anything other than an object holding a `formulae` list
    means brew speaks a format we do not understand.

    Raises:
        ParseError: If the payload is not JSON (including numbers too long to decode
            and nesting too deep to decode) or lacks the `formulae` list.
    """
    try:
        payload = json.loads(decode_output(data))
    except (ValueError, RecursionError) as e:
        raise ParseError(str(e)) from e

    if not isinstance(payload, dict):
        raise ParseError(f"expected a JSON object, got {type(payload).__name__}")
    formulae = payload.get("formulae")
    if not isinstance(formulae, list):
        raise ParseError("missing 'formulae' list")
    return formulae


def _opt_str(value: object) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _opt_bool(value: object) -> bool | None:
    return value if isinstance(value, bool) else None


def _opt_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


def _opt_names(value: object) -> tuple[str, ...] | None:
    """Converts a JSON list of names, skipping entries that are not strings."""
    if not isinstance(value, list):
        return None
    return tuple(v for v in value if isinstance(v, str))


def _parse_versions(value: object) -> VersionInfo:
    if not isinstance(value, dict):
        return VersionInfo()
    return VersionInfo(
        stable=_opt_str(value.get("stable")),
        head=_opt_str(value.get("head")),
        bottle=_opt_bool(value.get("bottle")),
    )


def _parse_receipts(value: object) -> tuple[InstalledReceipt, ...] | None:
    if not isinstance(value, list):
        return None

    receipts: list[InstalledReceipt] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        version = _opt_str(item.get("version"))
        if not version:
            continue
        receipts.append(
            InstalledReceipt(
                version=version,
                built_as_bottle=item.get("built_as_bottle") is True,
                poured_from_bottle=item.get("poured_from_bottle") is True,
                installed_as_dependency=item.get("installed_as_dependency") is True,
                installed_on_request=item.get("installed_on_request") is True,
                time=_opt_int(item.get("time")),
                used_options=_opt_names(item.get("used_options")) or (),
            )
        )
    return tuple(receipts)


def _formula_name(item: dict) -> str:
    name = item.get("name")
    return name.strip() if isinstance(name, str) else ""


def parse_bulk_listing(data: bytes | str, installed: bool = True) -> list[PackageSummary]:
    """Parses `brew info --json=v2 --installed` output into summaries.

    Args:
        data: Raw stdout of brew.
        installed: Value for the `installed` flag of every summary.

    Returns:
        One summary per formula entry; entries without a name are skipped.

    Raises:
        ParseError: If the top-level structure is not recognised.
    """
    packages: list[PackageSummary] = []
    for item in _load_formulae(data):
        if not isinstance(item, dict):
            continue
        name = _formula_name(item)
        if not name:
            continue
        packages.append(
            PackageSummary(
                name=name,
                version=_parse_versions(item.get("versions")).stable,
                description=_opt_str(item.get("desc")),
                homepage=_opt_str(item.get("homepage")),
                installed=installed,
            )
        )
    return packages


def parse_detail(data: bytes | str) -> FormulaDetail:
    """Parses `brew info --json=v2 <name>` output into a detail record.

    Raises:
        ParseError: If the top-level structure is not recognised, or it holds no
            usable formula.
    """
    formulae = _load_formulae(data)
    if not formulae:
        raise ParseError("No formula found in response")

    item = formulae[0]
    if not isinstance(item, dict) or not _formula_name(item):
        raise ParseError("formula entry has no name")

    return FormulaDetail(
        name=_formula_name(item),
        versions=_parse_versions(item.get("versions")),
        full_name=_opt_str(item.get("full_name")),
        tap=_opt_str(item.get("tap")),
        description=_opt_str(item.get("desc")),
        homepage=_opt_str(item.get("homepage")),
        license=_opt_str(item.get("license")),
        aliases=_opt_names(item.get("aliases")),
        build_dependencies=_opt_names(item.get("build_dependencies")),
        dependencies=_opt_names(item.get("dependencies")),
        test_dependencies=_opt_names(item.get("test_dependencies")),
        recommended_dependencies=_opt_names(item.get("recommended_dependencies")),
        optional_dependencies=_opt_names(item.get("optional_dependencies")),
        conflicts_with=_opt_names(item.get("conflicts_with")),
        caveats=_opt_str(item.get("caveats")),
        keg_only=_opt_bool(item.get("keg_only")),
        installed=_parse_receipts(item.get("installed")),
        linked_keg=_opt_str(item.get("linked_keg")),
        pinned=_opt_bool(item.get("pinned")),
        outdated=_opt_bool(item.get("outdated")),
        deprecated=_opt_bool(item.get("deprecated")),
        deprecation_date=_opt_str(item.get("deprecation_date")),
        deprecation_reason=_opt_str(item.get("deprecation_reason")),
        disabled=_opt_bool(item.get("disabled")),
        disable_date=_opt_str(item.get("disable_date")),
        disable_reason=_opt_str(item.get("disable_reason")),
    )
