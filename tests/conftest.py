import pytest

from amaranth.lib.enum import Enum
from amaranth.sim import Simulator

@pytest.fixture
def simulate():
    """Runs an async testbench against a design.

    Purely combinational designs have no sync domain, so pass clock = False
    for those.
    """
    def run(dut, bench, *, clock = True):
        sim = Simulator(dut)
        if clock:
            sim.add_clock(1e-6)
        sim.add_testbench(bench)
        sim.run()
    return run

def check_fields(ctx, record, expected):
    """Asserts that fields of a struct-shaped port have the given values.
    expected maps field names to values; names with a dot reach into nested
    structs, e.g. alu.fn."""
    for name, value in expected.items():
        view = record
        for part in name.split('.'):
            view = getattr(view, part)
        actual = ctx.get(view)
        if isinstance(value, Enum):
            actual = type(value)(actual)
            assert actual == value, \
                    f"{name} should be {value.name} but is {actual.name}"
        else:
            assert actual == value, \
                    f"{name} should be 0x{value:x} but is 0x{actual:x}"
