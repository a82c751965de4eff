"""
Kernel Inspector Tests
"""

import pytest
from rich.console import Console

from weft.visualization import KernelInspector


@pytest.fixture
def console():
    return Console(record=True, width=160, color_system=None)


def rendered(console):
    return console.export_text()


class TestListenersTable:
    def test_lists_registrations(self, kernel, console):
        kernel.on("user:*", lambda event, ctx: None, id="audit", priority=-10)
        kernel.on("user:created", lambda event, ctx: None, id="mail", after="audit", once=True)
        kernel.on("user:created", lambda event, ctx: None, id="poll", once=lambda event: True)

        KernelInspector(kernel, console).print_listeners()
        text = rendered(console)

        assert "Registered Listeners" in text
        assert "audit" in text
        assert "-10" in text
        assert "once" in text
        assert "until predicate" in text

    def test_empty_kernel(self, kernel, console):
        table = KernelInspector(kernel, console).listeners_table()

        assert table.row_count == 0


class TestPlanTree:
    def test_levels(self, kernel, console):
        kernel.on("e", lambda event, ctx: None, id="first")
        kernel.on("e", lambda event, ctx: None, id="second", after="first")

        KernelInspector(kernel, console).print_plan("e")
        text = rendered(console)

        assert "Level 0" in text
        assert "Level 1" in text
        assert "after first" in text

    def test_no_listeners(self, kernel, console):
        KernelInspector(kernel, console).print_plan("nothing")

        assert "no listeners" in rendered(console)

    def test_ordering_error_is_rendered(self, kernel, console):
        kernel.on("e", lambda event, ctx: None, id="a", after="ghost")

        KernelInspector(kernel, console).print_plan("e")

        assert "MISSING_DEPENDENCY" in rendered(console)


class TestErrorsTable:
    @pytest.mark.asyncio
    async def test_lists_last_emission_failures(self, kernel, console):
        def broken(event, ctx):
            raise ValueError("bad input")

        kernel.on("e", broken, id="broken")
        await kernel.emit("e")

        KernelInspector(kernel, console).print_errors()
        text = rendered(console)

        assert "broken" in text
        assert "ValueError: bad input" in text
