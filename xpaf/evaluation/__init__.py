"""
Evaluation Module - Per-Document Relation Extraction

Components, leaves first:
1. Post-Processing Pipeline (transform or void single results)
2. Query Group Resolver (root-aligned results for grouped queries)
3. Query Evaluator (typed references -> ordered result sequences)
4. Relation Template Evaluator (cardinality reconciliation -> relations)

All state here is per document; compiled parsers are shared read-only.
"""

from xpaf.evaluation.results import VOID, Present, ResultValue, Void, is_void, xpath_result_values
from xpaf.evaluation.post_processing import (
    ExtractOperation,
    PostProcessingPipeline,
    ReplaceOperation,
    build_operation,
    compile_regexp,
)
from xpaf.evaluation.group_resolver import ResolvedGroup, resolve_group
from xpaf.evaluation.query_evaluator import QueryEvaluator, evaluate_query
from xpaf.evaluation.relation_evaluator import (
    RelationTemplateEvaluator,
    compute_num_relations,
    fits_cardinality,
)

__all__ = [
    # Results
    "Present",
    "Void",
    "VOID",
    "ResultValue",
    "is_void",
    "xpath_result_values",
    # Post-processing
    "ExtractOperation",
    "ReplaceOperation",
    "PostProcessingPipeline",
    "build_operation",
    "compile_regexp",
    # Queries
    "QueryEvaluator",
    "evaluate_query",
    "ResolvedGroup",
    "resolve_group",
    # Relations
    "RelationTemplateEvaluator",
    "compute_num_relations",
    "fits_cardinality",
]
