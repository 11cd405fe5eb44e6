"""jq evaluator backed by the ``jq`` Python bindings."""

from typing import Any

import jq

from httpgauge.core.ports import CompiledQuery


class JqEvaluator:
    """QueryEvaluator implementation using libjq.

    Only the first output of a program is used; a program that produces no
    output yields None. Outputs are pulled lazily, so later outputs are never
    computed.
    """

    def compile(self, query: str) -> CompiledQuery:
        program = jq.compile(query)

        def evaluate(text: str) -> Any:
            return next(iter(program.input_text(text)), None)

        return evaluate
