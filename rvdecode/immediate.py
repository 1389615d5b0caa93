# Immediate reconstruction.

from amaranth import *
from amaranth.lib.wiring import *

from rvdecode import mux, oneof
from rvdecode.isa import Opcode

class ImmediateDecoder(Component):
    """The ImmediateDecoder rebuilds the sign-extended 32-bit immediate of an
    instruction word.

    Rather than building each of the I/S/B/U/J immediates separately and
    choosing between them, this picks each bit segment of the result
    individually, since most segments only have two or three possible
    sources:

        segment   U        J        I        S        B        sign source
        31:20     31:20    sign     sign     sign     sign     inst[31]
        19:12     19:12    19:12    sign     sign     sign
        11        0        20       sign     sign     7
        10:5      0        30:25    30:25    30:25    30:25
        4:1       0        24:21    24:21    11:8     11:8
        0         0        0        20       7        0

    Instructions with no immediate (R-format) get the S/B rules, which is
    harmless since nobody looks at the result.

    Attributes
    ----------
    inst (input): instruction word.
    imm (output): reconstructed immediate.
    is_i, is_s, is_b, is_u, is_j (output): format strobes derived from the
        opcode group. At most one is set.
    """
    inst: In(32)

    imm: Out(32)

    is_i: Out(1)
    is_s: Out(1)
    is_b: Out(1)
    is_u: Out(1)
    is_j: Out(1)

    def elaborate(self, platform):
        m = Module()

        inst = self.inst
        opcode = inst[2:7]
        sign = inst[31]

        m.d.comb += [
            self.is_i.eq(
                (opcode == Opcode.LOAD)
                | (opcode == Opcode.ALUIMM)
                | (opcode == Opcode.JALR)
                | (opcode == Opcode.MISC_MEM)
                | (opcode == Opcode.SYSTEM)
            ),
            self.is_s.eq(opcode == Opcode.STORE),
            self.is_b.eq(opcode == Opcode.BRANCH),
            self.is_u.eq((opcode == Opcode.LUI) | (opcode == Opcode.AUIPC)),
            self.is_j.eq(opcode == Opcode.JAL),
        ]

        bit0 = Signal(1)
        bits4_1 = Signal(4)
        bits10_5 = Signal(6)
        bit11 = Signal(1)
        bits19_12 = Signal(8)
        bits31_20 = Signal(12)

        m.d.comb += [
            bit0.eq(oneof([
                (self.is_i, inst[20]),
                (self.is_s, inst[7]),
            ])),
            bits4_1.eq(oneof([
                (self.is_u, 0),
                (self.is_i | self.is_j, inst[21:25]),
            ], default = inst[8:12])),
            bits10_5.eq(mux(self.is_u, 0, inst[25:31])),
            bit11.eq(oneof([
                (self.is_u, 0),
                (self.is_b, inst[7]),
                (self.is_j, inst[20]),
            ], default = sign)),
            bits19_12.eq(mux(
                self.is_u | self.is_j,
                inst[12:20],
                sign.replicate(8),
            )),
            bits31_20.eq(mux(self.is_u, inst[20:32], sign.replicate(12))),
        ]

        m.d.comb += self.imm.eq(Cat(
            bit0, bits4_1, bits10_5, bit11, bits19_12, bits31_20,
        ))

        return m
