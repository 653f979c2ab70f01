"""
Relation Template Evaluator

Turns one relation template plus the resolved results of a document into
zero or more relations.

Cardinality rules:
- ONE fields must produce zero or one result; the result (or VOID if there
  is none) is duplicated across all N relations.
- MANY fields must all produce the same number of results, N.

If the subject or object breaks these rules the whole template is skipped for
the document. If an annotation breaks them only that annotation is dropped.

Void handling:
- A void subject or object at index i skips relation i. Other indices are
  unaffected and keep their alignment.
- A void annotation value at index i is left out of relation i only.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from xpaf.evaluation.query_evaluator import QueryEvaluator
from xpaf.evaluation.results import VOID, ResultValue, is_void
from xpaf.exceptions import EvaluationError
from xpaf.models import Annotation, Cardinality, Relation
from xpaf.schema.references import CompiledAnnotation, CompiledTemplate

logger = structlog.get_logger(__name__)


def compute_num_relations(
    subject_count: int,
    subject_cardinality: Cardinality,
    object_count: int,
    object_cardinality: Cardinality,
) -> int | None:
    """
    Compute how many relations a template produces.

    Args:
        subject_count: Number of subject results.
        subject_cardinality: Declared subject cardinality.
        object_count: Number of object results.
        object_cardinality: Declared object cardinality.

    Returns:
        N, or None if the template must be skipped.
    """
    if subject_cardinality == Cardinality.ONE and subject_count > 1:
        return None
    if object_cardinality == Cardinality.ONE and object_count > 1:
        return None

    subject_many = subject_cardinality == Cardinality.MANY
    object_many = object_cardinality == Cardinality.MANY

    if subject_many and object_many:
        return subject_count if subject_count == object_count else None
    if subject_many:
        return subject_count
    if object_many:
        return object_count
    return 1


def fits_cardinality(count: int, cardinality: Cardinality, num_relations: int) -> bool:
    """Check an annotation's result count against an already fixed N."""
    if cardinality == Cardinality.ONE:
        return count <= 1
    return count == num_relations


def value_at(results: list[ResultValue], cardinality: Cardinality, index: int) -> ResultValue:
    """Result for relation `index`: the i-th for MANY, the only one for ONE."""
    if cardinality == Cardinality.MANY:
        return results[index]
    return results[0] if results else VOID


@dataclass
class _ResolvedAnnotation:
    name: str
    results: list[ResultValue]
    cardinality: Cardinality


class RelationTemplateEvaluator:
    """
    Evaluates relation templates against one document.

    Shares a QueryEvaluator with the other templates of the same parser, so
    queries referenced by several templates are evaluated once.
    """

    def __init__(self, evaluator: QueryEvaluator):
        self.evaluator = evaluator

    @property
    def url(self) -> str:
        return self.evaluator.document.url

    def evaluate(self, template: CompiledTemplate) -> list[Relation]:
        """
        Build all relations for one template.

        Never raises for document-level problems: a template that cannot be
        evaluated produces no relations and is logged.
        """
        if template.url_pattern is not None and not template.url_pattern.search(self.url):
            logger.debug(
                "relation_template_url_mismatch",
                template=template.label,
                url=self.url,
            )
            return []

        try:
            subjects = self.evaluator.resolve(template.subject)
            objects = self.evaluator.resolve(template.object)
        except EvaluationError as e:
            self._skip(template, "evaluation_error", error=str(e))
            return []

        num_relations = compute_num_relations(
            len(subjects),
            template.subject_cardinality,
            len(objects),
            template.object_cardinality,
        )
        if num_relations is None:
            self._skip(
                template,
                "cardinality_mismatch",
                subjects=len(subjects),
                subject_cardinality=template.subject_cardinality.value,
                objects=len(objects),
                object_cardinality=template.object_cardinality.value,
            )
            return []

        annotations = self._resolve_annotations(template, num_relations)

        relations = []
        for i in range(num_relations):
            subject = value_at(subjects, template.subject_cardinality, i)
            obj = value_at(objects, template.object_cardinality, i)
            if is_void(subject) or is_void(obj):
                logger.debug(
                    "relation_void_skipped",
                    template=template.label,
                    index=i,
                    url=self.url,
                )
                continue

            relations.append(
                Relation(
                    subject=subject.value,
                    predicate=template.predicate,
                    object=obj.value,
                    annotations=self._annotations_at(annotations, i),
                    userdata=template.userdata,
                )
            )

        logger.debug(
            "relation_template_evaluated",
            template=template.label,
            candidates=num_relations,
            emitted=len(relations),
        )
        return relations

    def _resolve_annotations(
        self,
        template: CompiledTemplate,
        num_relations: int,
    ) -> list[_ResolvedAnnotation]:
        resolved = []
        for annotation in template.annotations:
            results = self._resolve_annotation(template, annotation)
            if results is None:
                continue

            if not fits_cardinality(len(results), annotation.cardinality, num_relations):
                logger.warning(
                    "annotation_skipped",
                    template=template.label,
                    annotation=annotation.name,
                    reason="cardinality_mismatch",
                    results=len(results),
                    cardinality=annotation.cardinality.value,
                    num_relations=num_relations,
                    url=self.url,
                )
                continue

            resolved.append(_ResolvedAnnotation(annotation.name, results, annotation.cardinality))
        return resolved

    def _resolve_annotation(
        self,
        template: CompiledTemplate,
        annotation: CompiledAnnotation,
    ) -> list[ResultValue] | None:
        try:
            return self.evaluator.resolve(annotation.value)
        except EvaluationError as e:
            logger.warning(
                "annotation_skipped",
                template=template.label,
                annotation=annotation.name,
                reason="evaluation_error",
                error=str(e),
                url=self.url,
            )
            return None

    @staticmethod
    def _annotations_at(annotations: list[_ResolvedAnnotation], index: int) -> list[Annotation]:
        result = []
        for annotation in annotations:
            value = value_at(annotation.results, annotation.cardinality, index)
            if not is_void(value):
                result.append(Annotation(name=annotation.name, value=value.value))
        return result

    def _skip(self, template: CompiledTemplate, reason: str, **details) -> None:
        logger.warning(
            "relation_template_skipped",
            parser=self.evaluator.parser.name,
            template=template.label,
            reason=reason,
            url=self.url,
            **details,
        )
