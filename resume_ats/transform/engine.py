from __future__ import annotations

import logging
from dataclasses import dataclass, field

from resume_ats.analysis.formats import vocabulary_for
from resume_ats.core.errors import PartFixFailure
from resume_ats.package.container import DocumentPackage
from resume_ats.schemas.ats import (
    FIX_ORDER,
    DocumentFormat,
    ModificationRecord,
    StructuralProfile,
    TransformOptions,
)
from resume_ats.taxonomy import AtsVocabulary, get_default_vocabulary

from . import fixes_odf, fixes_ooxml
from .parts import FixContext, FixFunction

logger = logging.getLogger(__name__)

_FIXES_BY_FORMAT: dict[DocumentFormat, dict[str, FixFunction]] = {
    DocumentFormat.OOXML: fixes_ooxml.FIXES,
    DocumentFormat.ODF: fixes_odf.FIXES,
}


@dataclass(frozen=True)
class TransformResult:
    package: DocumentPackage
    modifications: list[ModificationRecord] = field(default_factory=list)

    @property
    def applied(self) -> list[str]:
        return [record.fix for record in self.modifications if record.status == "applied"]


def plan_fixes(profile: StructuralProfile, options: TransformOptions) -> list[tuple[str, str | None]]:
    """Return ``(fix, reason_skipped)`` for every fix in execution order."""
    enabled = {
        "fonts": options.fix_fonts,
        "text_boxes": options.remove_text_boxes,
        "columns": options.convert_columns,
        "tables": options.simplify_tables,
    }
    needed = {
        "fonts": bool(profile.fonts.non_safe),
        "text_boxes": profile.text_boxes.present,
        "columns": profile.columns.present,
        "tables": profile.tables.has_nested,
    }
    plan: list[tuple[str, str | None]] = []
    for fix in FIX_ORDER:
        if not enabled[fix]:
            plan.append((fix, "disabled by options"))
        elif not needed[fix]:
            plan.append((fix, "no matching issue detected"))
        else:
            plan.append((fix, None))
    return plan


class TransformEngine:
    """Runs the selected fixes in order, each against the previous fix's package."""

    def __init__(self, vocabulary: AtsVocabulary | None = None):
        self.vocabulary = vocabulary or get_default_vocabulary()

    def fix_issues(
        self,
        package: DocumentPackage,
        profile: StructuralProfile,
        options: TransformOptions | None = None,
    ) -> TransformResult:
        options = options or TransformOptions()
        plan = plan_fixes(profile, options)
        fixes = _FIXES_BY_FORMAT.get(profile.format)
        if fixes is None:
            read_only = [
                ModificationRecord(fix=fix, status="skipped", detail=f"{profile.format.value} documents are read-only")
                for fix, _ in plan
            ]
            return TransformResult(package=package, modifications=read_only)

        context = FixContext(formats=vocabulary_for(profile.format), vocabulary=self.vocabulary)
        current = package
        records: list[ModificationRecord] = []
        for fix, reason in plan:
            if reason is not None:
                records.append(ModificationRecord(fix=fix, status="skipped", detail=reason))
                continue
            try:
                outcome = fixes[fix](current, context)
            except PartFixFailure as exc:
                logger.warning("ats_fix_failed fix=%s format=%s error=%s", fix, profile.format.value, exc)
                records.append(ModificationRecord(fix=fix, status="failed", detail=str(exc)))
                continue
            except Exception as exc:  # noqa: BLE001 - one fix must not abort the others
                logger.exception("ats_fix_crashed fix=%s format=%s", fix, profile.format.value)
                records.append(ModificationRecord(fix=fix, status="failed", detail=f"{fix}: unexpected error: {exc}"))
                continue
            if not outcome.updates:
                records.append(ModificationRecord(fix=fix, status="skipped", detail=outcome.detail))
                continue
            current = current.with_entries(outcome.updates)
            records.append(
                ModificationRecord(fix=fix, status="applied", parts=sorted(outcome.updates), detail=outcome.detail)
            )
            logger.info("ats_fix_applied fix=%s parts=%s", fix, ",".join(sorted(outcome.updates)))
        return TransformResult(package=current, modifications=records)


def fix_issues(
    package: DocumentPackage,
    profile: StructuralProfile,
    options: TransformOptions | None = None,
    *,
    vocabulary: AtsVocabulary | None = None,
) -> TransformResult:
    return TransformEngine(vocabulary).fix_issues(package, profile, options)
