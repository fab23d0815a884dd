# Copyright (C) 2018-'25  Frank Sachsenheim
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

from __future__ import annotations

import warnings
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, overload


if TYPE_CHECKING:
    from _locpath.typing import (
        GenericDecorated,
        SecondOrderDecorator,
        XPathFunction,
    )


class PluginManager:
    __slots__ = ("xpath_functions",)

    def __init__(self):
        self.xpath_functions: dict[str, XPathFunction] = {}

    @staticmethod
    def load_plugins():
        """
        Loads all modules that are registered as entrypoint in the ``locpath`` group.
        Such modules are expected to register their contributions when they're
        imported.
        """
        for entrypoint in entry_points().select(group="locpath"):
            entrypoint.load()

    @overload
    def register_xpath_function(self, arg: str) -> SecondOrderDecorator: ...

    @overload
    def register_xpath_function(self, arg: GenericDecorated) -> GenericDecorated: ...

    def register_xpath_function(
        self, arg: str | GenericDecorated
    ) -> SecondOrderDecorator | GenericDecorated:
        """
        Custom XPath functions can be defined as shown in the following example. The
        first argument to a function is always an instance of
        :class:`_locpath.xpath.EvaluationContext` followed by the expression's
        arguments. These can be of the types :class:`bool`, :class:`float`,
        :class:`int`, :class:`str` or a :class:`tuple` of nodes in document order.

        .. testcode::

            from locpath import parse_tree, select
            from _locpath.plugins import plugin_manager
            from _locpath.xpath import EvaluationContext, to_string


            @plugin_manager.register_xpath_function("is-last")
            def is_last(context: EvaluationContext) -> bool:
                return context.position == context.size

            @plugin_manager.register_xpath_function
            def lowercase(_, value) -> str:
                return to_string(value).lower()


            tree = parse_tree("<root><node/><node foo='BAR'/></root>")
            results = select(tree.document, "//*[is-last() and lowercase(@foo)='bar']")
            print(results.size)

        .. testoutput::

            1

        Functions are bound to the expressions that are parsed after the registration.
        """
        if isinstance(arg, str):

            def wrapper(func: XPathFunction) -> XPathFunction:
                self._register(arg, func)
                return func

            return wrapper

        if callable(arg):
            self._register(arg.__name__, arg)
            return arg

        raise TypeError

    def _register(self, name: str, function: XPathFunction):
        if name in self.xpath_functions:
            warnings.warn(
                f"The XPath function `{name}` is redefined.",
                category=UserWarning,
                stacklevel=3,
            )
        self.xpath_functions[name] = function


plugin_manager = PluginManager()


__all__ = (PluginManager.__name__, "plugin_manager")
