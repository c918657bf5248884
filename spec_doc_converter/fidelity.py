"""Round-trip fidelity check: spec -> document -> spec, then diff.

Each deduction unit costs 5 points. Title, operationId and security
mismatches are reported without a deduction.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from loguru import logger

from .config import ConversionOptions, SpecFormat
from .doc_extract import parse_document_to_spec
from .doc_render import HTTP_METHODS, render_spec_document
from .io_utils import parse_spec_text, serialize_spec

POINTS_PER_DEDUCTION = 5
MAX_SCORE = 100


@dataclass
class FidelityReport:
    score: int
    report: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'score': self.score, 'report': list(self.report)}


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _count(value: Any) -> int:
    return len(value) if isinstance(value, (list, tuple, Mapping)) else 0


def _methods(path_item: Any) -> List[str]:
    return [m for m in _mapping(path_item) if str(m).lower() in HTTP_METHODS]


def score_from_deductions(deductions: int) -> int:
    return max(0, MAX_SCORE - POINTS_PER_DEDUCTION * deductions)


def compare_specs(original: Mapping[str, Any], restored: Mapping[str, Any]) -> FidelityReport:
    """Diff an original spec against its restored counterpart."""
    report: List[str] = []
    deductions = 0

    orig_title = _mapping(original.get('info')).get('title')
    rest_title = _mapping(restored.get('info')).get('title')
    if orig_title != rest_title:
        report.append(f'Title mismatch: "{orig_title}" vs "{rest_title}"')

    orig_servers = _count(original.get('servers'))
    rest_servers = _count(restored.get('servers'))
    if orig_servers != rest_servers:
        report.append(f"Missing Servers: Expected {orig_servers}, got {rest_servers}")
        deductions += 1

    orig_tags = _count(original.get('tags'))
    rest_tags = _count(restored.get('tags'))
    if orig_tags != rest_tags:
        report.append(f"Missing Tags: Expected {orig_tags}, got {rest_tags}")
        deductions += 1

    orig_comps = _count(_mapping(original.get('components')).get('schemas'))
    rest_comps = _count(_mapping(restored.get('components')).get('schemas'))
    if orig_comps != rest_comps:
        report.append(f"Missing Components: Expected {orig_comps}, got {rest_comps}")
        deductions += abs(orig_comps - rest_comps)

    restored_paths = _mapping(restored.get('paths'))
    for path, path_item in _mapping(original.get('paths')).items():
        restored_item = restored_paths.get(path)
        if not isinstance(restored_item, Mapping):
            report.append(f"Missing Path: {path}")
            deductions += 1
            continue

        for method in _methods(path_item):
            orig_op = _mapping(path_item.get(method))
            rest_op = restored_item.get(method)
            if rest_op is None:
                rest_op = restored_item.get(str(method).lower())
            if not isinstance(rest_op, Mapping):
                report.append(f"Missing Method: {str(method).upper()} {path}")
                deductions += 1
                continue

            orig_id = orig_op.get('operationId')
            rest_id = rest_op.get('operationId')
            if orig_id and rest_id and orig_id != rest_id:
                report.append(f"OpID Mismatch {path} {method}: {orig_id} vs {rest_id}")
            if _count(orig_op.get('security')) != _count(rest_op.get('security')):
                report.append(f"Security mismatch in {str(method).upper()} {path}")

    return FidelityReport(score=score_from_deductions(deductions), report=report)


def validate_spec_fidelity(original_content: str, options: Optional[ConversionOptions] = None) -> FidelityReport:
    """Run the full round trip and score it. Never raises."""
    options = options or ConversionOptions()
    try:
        original = parse_spec_text(original_content)
        document = render_spec_document(original, options)
        restored_text = serialize_spec(parse_document_to_spec(document), SpecFormat.JSON)
        restored = parse_spec_text(restored_text)
        result = compare_specs(original, restored)
    except Exception as exc:
        logger.warning("Fidelity validation failed: {}", exc)
        return FidelityReport(score=0, report=[f"Validation Failed: {exc}"])

    logger.info("Fidelity score {} with {} findings", result.score, len(result.report))
    return result
