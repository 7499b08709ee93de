"""Stored procedure CALL builder."""

from querykit.builder._select import SelectFunctionQuery

__all__ = ("CallProcedureQuery",)


class CallProcedureQuery(SelectFunctionQuery):
    """Builds ``CALL <procedure>(<arg>,...)``. Procedures may take no arguments."""

    __slots__ = ()

    _keyword = "CALL"

    @property
    def procedure(self) -> str:
        return self._function

    def _render_arguments(self) -> str:
        return ",".join(self._arguments)
