from __future__ import annotations

from typing import TYPE_CHECKING

from _locpath.plugins import plugin_manager
from _locpath.xpath import to_string

if TYPE_CHECKING:
    from _locpath.xpath import EvaluationContext


@plugin_manager.register_xpath_function("is-last")
def is_last(context: EvaluationContext) -> bool:
    return context.position == context.size


@plugin_manager.register_xpath_function
def lowercase(_, value) -> str:
    return to_string(value).lower()
