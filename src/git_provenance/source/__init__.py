"""Recognition of analyzed-language source files and their definitions."""

from .elixir import (
    Definition,
    DefinitionExtractor,
    behaviour_modules,
    count_args,
    function_clauses,
    jaccard,
    module_names,
    module_source,
    scan_definitions,
    tokenize,
)
from .naming import (
    camelize,
    is_source_file,
    module_from_path,
    module_path_candidates,
    underscore,
)

__all__ = [
    "Definition",
    "DefinitionExtractor",
    "behaviour_modules",
    "camelize",
    "count_args",
    "function_clauses",
    "is_source_file",
    "jaccard",
    "module_from_path",
    "module_names",
    "module_path_candidates",
    "module_source",
    "scan_definitions",
    "tokenize",
    "underscore",
]
