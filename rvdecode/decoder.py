# Combinational control decode logic.

from amaranth import *
from amaranth.lib.wiring import *

from rvdecode.isa import Opcode, Funct7, AluFunc
from rvdecode.uop import Control

class ControlDecoder(Component):
    """The ControlDecoder maps the opcode group and function codes of an
    instruction to the control signals for the arithmetic unit, and decides
    whether the instruction is one we know.

    Anything it doesn't recognize comes out with every flag clear, fn set to
    ADD, and valid clear. That includes recognized opcode groups with a funct3
    or funct7 that doesn't match any operation: nothing is set unless valid
    is. It doesn't look at the low two opcode bits; that check is up to the
    caller.

    Parameters
    ----------
    control_flow (bool): also recognize JAL, JALR, branches, loads and stores.
        When False (the default) only LUI, AUIPC, and the register-immediate
        and register-register ALU groups are legal.

    Attributes
    ----------
    opcode (input): opcode group, instruction bits 6:2.
    funct3 (input): instruction bits 14:12.
    funct7 (input): instruction bits 31:25.
    ctrl (output): see the Control struct.
    """
    opcode: In(5)
    funct3: In(3)
    funct7: In(7)

    ctrl: Out(Control)

    def __init__(self, *,
                 control_flow = False):
        super().__init__()

        self.control_flow = control_flow

    def elaborate(self, platform):
        m = Module()

        ctrl = self.ctrl
        alu = ctrl.alu

        normal = self.funct7 == Funct7.NORMAL
        alt = self.funct7 == Funct7.ALT

        # Marks the instruction valid and applies the given control settings,
        # if condition holds (or unconditionally if it's None).
        def accept(condition, *settings):
            stmts = [ctrl.valid.eq(1), *settings]
            if condition is None:
                m.d.comb += stmts
            else:
                with m.If(condition):
                    m.d.comb += stmts

        # The ALU groups share one table. For ALUREG every row checks funct7;
        # for ALUIMM only the shifts do, since everywhere else those bits are
        # part of the immediate.
        def alu_table(reg):
            required = normal if reg else None
            with m.Switch(self.funct3):
                with m.Case(0b000): # ADD(I)/SUB
                    accept(required)
                    if reg:
                        accept(alt, alu.carry_in.eq(1))
                with m.Case(0b001): # SLL(I)
                    accept(normal,
                           alu.reverse.eq(1),
                           alu.unsigned.eq(1),
                           alu.fn.eq(AluFunc.SHIFT))
                with m.Case(0b010): # SLT(I)
                    accept(required,
                           alu.carry_in.eq(1),
                           alu.fn.eq(AluFunc.COMPARE))
                with m.Case(0b011): # SLT(I)U
                    accept(required,
                           alu.carry_in.eq(1),
                           alu.unsigned.eq(1),
                           alu.fn.eq(AluFunc.COMPARE))
                with m.Case(0b100): # XOR(I)
                    accept(required, alu.fn.eq(AluFunc.XOR))
                with m.Case(0b101): # SRL(I)/SRA(I)
                    accept(normal,
                           alu.unsigned.eq(1),
                           alu.fn.eq(AluFunc.SHIFT))
                    accept(alt, alu.fn.eq(AluFunc.SHIFT))
                with m.Case(0b110): # OR(I)
                    accept(required, alu.fn.eq(AluFunc.OR))
                with m.Case(0b111): # AND(I)
                    accept(required, alu.fn.eq(AluFunc.AND))

        with m.Switch(self.opcode):
            with m.Case(Opcode.LUI, Opcode.AUIPC):
                # Plain add; the stage wires up the operands.
                accept(None)

            with m.Case(Opcode.ALUIMM):
                alu_table(reg = False)

            with m.Case(Opcode.ALUREG):
                alu_table(reg = True)

            if self.control_flow:
                with m.Case(Opcode.JAL):
                    accept(None, ctrl.jump.eq(1))

                with m.Case(Opcode.JALR):
                    accept(self.funct3 == 0,
                           ctrl.jump.eq(1),
                           alu.align.eq(1))

                with m.Case(Opcode.BRANCH):
                    def compare():
                        return [
                            ctrl.branch.eq(1),
                            alu.fn.eq(AluFunc.COMPARE),
                            # BNE, BGE, BGEU
                            alu.invert.eq(self.funct3[0]),
                        ]
                    with m.Switch(self.funct3):
                        with m.Case("00-"): # BEQ/BNE
                            accept(None, *compare(),
                                   alu.equal.eq(1))
                        with m.Case("10-"): # BLT/BGE
                            accept(None, *compare(),
                                   alu.carry_in.eq(1))
                        with m.Case("11-"): # BLTU/BGEU
                            accept(None, *compare(),
                                   alu.carry_in.eq(1),
                                   alu.unsigned.eq(1))

                with m.Case(Opcode.LOAD):
                    with m.Switch(self.funct3):
                        # LB, LH, LW, LBU, LHU
                        with m.Case(0b000, 0b001, 0b010, 0b100, 0b101):
                            accept(None,
                                   ctrl.load.eq(1),
                                   ctrl.mem_size.eq(self.funct3[:2]),
                                   ctrl.load_unsigned.eq(self.funct3[2]))

                with m.Case(Opcode.STORE):
                    with m.Switch(self.funct3):
                        # SB, SH, SW
                        with m.Case(0b000, 0b001, 0b010):
                            accept(None,
                                   ctrl.store.eq(1),
                                   ctrl.mem_size.eq(self.funct3[:2]))

        return m
