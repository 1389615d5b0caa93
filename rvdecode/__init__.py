from amaranth import *
from amaranth.lib import wiring
from amaranth.lib.enum import Enum
from amaranth.lib.wiring import In, Out

from functools import reduce

# Stream with backpressure: the producer drives payload and valid, the consumer
# drives ready, and a transfer happens in any cycle where both are high.
class StreamSig(wiring.Signature):
    def __init__(self, payload_shape):
        super().__init__({
            'payload': Out(payload_shape),
            'valid': Out(1),
            'ready': In(1),
        })

# Stream without backpressure. Used for strobes like register reads and writes,
# where valid doubles as the enable.
class AlwaysReady(wiring.Signature):
    def __init__(self, payload_shape):
        super().__init__({
            'payload': Out(payload_shape),
            'valid': Out(1),
        })

def _as_value(x):
    if isinstance(x, Enum):
        x = x.value
    if isinstance(x, int):
        x = Const(x)
    return Value.cast(x)

# Builds a mux but out of AND and OR, which often generates cheaper logic on
# 4LUT devices. The result is as wide as the wider of the two options.
def mux(select, one, zero):
    one = _as_value(one)
    zero = _as_value(zero)
    n = max(one.shape().width, zero.shape().width)
    select = select.any() # force to 1 bit
    return (
        (select.replicate(n) & one) | (~select.replicate(n) & zero)
    )

# Builds a chained mux that selects between a set of options, which must be
# mutually exclusive.
#
# 'options' is a list of pairs. The first element in each pair is evaluated as a
# boolean condition. If 1, the second element is OR'd into the result.
#
# This means if more than one condition is true simultaneously, the result will
# bitwise OR the results together. It is up to you to ensure that all
# conditions are mutually exclusive.
#
# If a default is provided, it will be used when no other conditions match.
# Otherwise, the default is zero.
def oneof(options, default = None):
    assert len(options) > 0
    output = []
    matches = []
    for (condition, result) in options:
        condition = _as_value(condition).any()
        result = _as_value(result)

        matches.append(condition)
        output.append(condition.replicate(result.shape().width) & result)

    if default is not None:
        default = _as_value(default)
        no_match = ~reduce(lambda a, b: a | b, matches)
        output.append(no_match.replicate(default.shape().width) & default)

    return reduce(lambda a, b: a | b, output)
