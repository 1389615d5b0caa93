# The decode stage: register read, immediate and control decode, and the
# pipeline register in front of execute.

from amaranth import *
from amaranth.lib.wiring import *

from rvdecode import StreamSig, AlwaysReady, mux
from rvdecode.isa import Opcode, Instruction, QUADRANT_32
from rvdecode.uop import FetchCmd, RegWrite, MicroOp
from rvdecode.regfile import RegFile
from rvdecode.immediate import ImmediateDecoder
from rvdecode.decoder import ControlDecoder

class DecodeStage(Component):
    """The DecodeStage turns fetched instructions into MicroOps for execute.

    It holds a single MicroOp at a time. A new instruction is taken whenever
    the slot is empty or the MicroOp in it is being taken by execute in the
    same cycle, so back-to-back transfers run at one per cycle without
    bubbles. While execute holds off, the held MicroOp doesn't change.

    Illegal instructions are not refused: they go through like any other,
    with the illegal flag set and the ALU and memory controls left at their
    defaults.

    Operand slots by opcode group (anything unlisted keeps the defaults in
    the first row):

        group    op1   op2   op3   op4
        (none)   PC    4     PC    0
        LUI      0     imm
        AUIPC          imm
        ALUIMM   rs1   imm
        ALUREG   rs1   rs2
      and with control_flow:
        JAL                        imm
        JALR                 rs1   imm
        BRANCH   rs1   rs2         imm
        LOAD                 rs1   imm
        STORE    0     rs2   rs1   imm

    Parameters
    ----------
    control_flow (bool): decode jumps, branches, loads and stores as well as
        the ALU and upper-immediate instructions. Passed on to the
        ControlDecoder.

    Attributes
    ----------
    inp (port): instruction stream from fetch.
    out (port): MicroOp stream to execute.
    wb (input): register write-back from writeback. This isn't affected by
        the state of the handshakes and can arrive in any cycle.
    """
    inp: In(StreamSig(FetchCmd()))
    out: Out(StreamSig(MicroOp))

    wb: In(AlwaysReady(RegWrite()))

    def __init__(self, *,
                 control_flow = False):
        super().__init__()

        self.control_flow = control_flow

        self.rf = RegFile()
        self.imm = ImmediateDecoder()
        self.dec = ControlDecoder(control_flow = control_flow)

    def elaborate(self, platform):
        m = Module()

        m.submodules.regfile = rf = self.rf
        m.submodules.imm = imm = self.imm
        m.submodules.dec = dec = self.dec

        pc = self.inp.payload.pc
        inst = Signal(Instruction)
        m.d.comb += inst.eq(self.inp.payload.inst)

        m.d.comb += [
            imm.inst.eq(self.inp.payload.inst),

            dec.opcode.eq(inst.opcode),
            dec.funct3.eq(inst.funct3),
            dec.funct7.eq(inst.funct7),

            rf.write_cmd.payload.reg.eq(self.wb.payload.reg),
            rf.write_cmd.payload.value.eq(self.wb.payload.value),
            rf.write_cmd.valid.eq(self.wb.valid),
        ]

        # Register read enables, set below per opcode group.
        rs1_en = Signal(1)
        rs2_en = Signal(1)
        m.d.comb += [
            rf.rp1.cmd.payload.eq(inst.rs1),
            rf.rp1.cmd.valid.eq(rs1_en),
            rf.rp2.cmd.payload.eq(inst.rs2),
            rf.rp2.cmd.valid.eq(rs2_en),
        ]
        rs1 = rf.rp1.resp
        rs2 = rf.rp2.resp

        # The MicroOp we'd latch if an instruction were accepted this cycle.
        uop = Signal(MicroOp)

        m.d.comb += [
            uop.op1.eq(pc),
            uop.op2.eq(4),
            uop.op3.eq(pc),
            uop.op4.eq(0),
        ]

        with m.Switch(inst.opcode):
            with m.Case(Opcode.LUI):
                m.d.comb += [
                    uop.op1.eq(0),
                    uop.op2.eq(imm.imm),
                ]
            with m.Case(Opcode.AUIPC):
                m.d.comb += uop.op2.eq(imm.imm)
            with m.Case(Opcode.ALUIMM):
                m.d.comb += [
                    rs1_en.eq(1),
                    uop.op1.eq(rs1),
                    uop.op2.eq(imm.imm),
                ]
            with m.Case(Opcode.ALUREG):
                m.d.comb += [
                    rs1_en.eq(1),
                    rs2_en.eq(1),
                    uop.op1.eq(rs1),
                    uop.op2.eq(rs2),
                ]

            if self.control_flow:
                with m.Case(Opcode.JAL):
                    # op1 + op2 is the link address, op3 + op4 the target.
                    m.d.comb += uop.op4.eq(imm.imm)
                with m.Case(Opcode.JALR, Opcode.LOAD):
                    m.d.comb += [
                        rs1_en.eq(1),
                        uop.op3.eq(rs1),
                        uop.op4.eq(imm.imm),
                    ]
                with m.Case(Opcode.BRANCH):
                    m.d.comb += [
                        rs1_en.eq(1),
                        rs2_en.eq(1),
                        uop.op1.eq(rs1),
                        uop.op2.eq(rs2),
                        uop.op4.eq(imm.imm),
                    ]
                with m.Case(Opcode.STORE):
                    # Store data comes out of the ALU as 0 + rs2.
                    m.d.comb += [
                        rs1_en.eq(1),
                        rs2_en.eq(1),
                        uop.op1.eq(0),
                        uop.op2.eq(rs2),
                        uop.op3.eq(rs1),
                        uop.op4.eq(imm.imm),
                    ]

        # x0 is never a write target, so a zero rd field means no write.
        # Branches and stores use those bits for the immediate instead.
        rd_write = inst.rd != 0
        if self.control_flow:
            rd_write = rd_write & ~(
                (inst.opcode == Opcode.BRANCH) | (inst.opcode == Opcode.STORE)
            )

        quadrant_ok = inst.quadrant == QUADRANT_32

        m.d.comb += [
            uop.rs1.eq(mux(rs1_en, inst.rs1, 0)),
            uop.rs1_used.eq(rs1_en),
            uop.rs2.eq(mux(rs2_en, inst.rs2, 0)),
            uop.rs2_used.eq(rs2_en),

            uop.rd_write.eq(rd_write),
            uop.rd.eq(mux(rd_write, inst.rd, 0)),

            uop.illegal.eq(~dec.ctrl.valid | ~quadrant_ok),

            uop.pc.eq(pc),
            uop.inst.eq(self.inp.payload.inst),
        ]

        # The decoder only sees bits 6:2, so it may still have recognized
        # something with a bad quadrant. Keep its controls out of the record
        # in that case.
        with m.If(quadrant_ok):
            m.d.comb += [
                uop.alu.eq(dec.ctrl.alu),
                uop.jump.eq(dec.ctrl.jump),
                uop.branch.eq(dec.ctrl.branch),
                uop.load.eq(dec.ctrl.load),
                uop.store.eq(dec.ctrl.store),
                uop.mem_size.eq(dec.ctrl.mem_size),
                uop.load_unsigned.eq(dec.ctrl.load_unsigned),
            ]

        # Handshakes. We can take a new instruction if we're empty, or if
        # whatever we're holding is leaving this cycle.
        m.d.comb += self.inp.ready.eq(~self.out.valid | self.out.ready)

        with m.If(self.inp.valid & self.inp.ready):
            m.d.sync += [
                self.out.payload.eq(uop),
                self.out.valid.eq(1),
            ]
        with m.Elif(self.out.valid & self.out.ready):
            m.d.sync += self.out.valid.eq(0)

        return m
