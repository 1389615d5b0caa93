# Streams a short program through the decode stage, with a toy execute stage
# on the far side that only knows how to add. Results are written back in the
# same cycle execute takes the MicroOp, so each dependent instruction behind
# it has to pick its operand up through forwarding.
#
# Prints every record as it retires and leaves decode.vcd / decode.gtkw
# behind for poking at in a waveform viewer.

import random

from amaranth import *
from amaranth.sim import Simulator

from rvdecode.stage import DecodeStage
from rvdecode.isa import AluFunc

program = [
    ("LUI x1, 0x12345000", 0b00010010001101000101_00001_0110111),
    ("ADDI x1, x1, 0x678", 0b011001111000_00001_000_00001_0010011),
    ("ADD x2, x1, x1", 0b0000000_00001_00001_000_00010_0110011),
    ("AUIPC x3, 0", 0b00000000000000000000_00011_0010111),
    ("SUB x4, x2, x1", 0b0100000_00001_00010_000_00100_0110011),
    ("ADDI x5, x2, -1", 0b111111111111_00010_000_00101_0010011),
    ("(zero word)", 0x0000_0000),
    ("ADD x6, x5, x3", 0b0000000_00011_00101_000_00110_0110011),
]

expected = {
    1: 0x12345678,
    2: 0x2468ACF0,
    3: 0xC,
    4: 0x12345678,
    5: 0x2468ACEF,
    6: 0x2468ACFB,
}

if __name__ == "__main__":
    dut = DecodeStage()

    ports = [
        dut.inp.valid,
        dut.inp.ready,
        dut.inp.payload.inst,
        dut.inp.payload.pc,
        dut.out.valid,
        dut.out.ready,
        dut.wb.valid,
        dut.wb.payload.reg,
        dut.wb.payload.value,
    ]

    sim = Simulator(dut)
    sim.add_clock(1e-6)

    rng = random.Random(0)

    async def process(ctx):
        registers = {}
        sent = 0
        retired = 0
        for cycle in range(200):
            if retired == len(program):
                break

            in_valid = sent < len(program) and rng.random() < 0.8
            out_ready = rng.random() < 0.5
            if sent < len(program):
                ctx.set(dut.inp.payload.inst, program[sent][1])
                ctx.set(dut.inp.payload.pc, 4 * sent)
            ctx.set(dut.inp.valid, in_valid)
            ctx.set(dut.out.ready, out_ready)
            ctx.set(dut.wb.valid, 0)

            if ctx.get(dut.out.valid) and out_ready:
                uop = dut.out.payload
                name = program[retired][0]
                op1 = ctx.get(uop.op1)
                op2 = ctx.get(uop.op2)
                rd = ctx.get(uop.rd)
                print(f"{cycle:3}: {ctx.get(uop.pc):08x} {name:20} "
                      f"op1=0x{op1:08x} op2=0x{op2:08x} rd=x{rd}", end='')

                adds = (AluFunc(ctx.get(uop.alu.fn)) == AluFunc.ADD
                        and not ctx.get(uop.alu.carry_in))
                subs = (AluFunc(ctx.get(uop.alu.fn)) == AluFunc.ADD
                        and ctx.get(uop.alu.carry_in))
                if ctx.get(uop.illegal):
                    print(" ILLEGAL")
                elif ctx.get(uop.rd_write) and (adds or subs):
                    if adds:
                        result = (op1 + op2) & 0xFFFF_FFFF
                    else:
                        result = (op1 - op2) & 0xFFFF_FFFF
                    print(f" -> 0x{result:08x}")
                    registers[rd] = result
                    ctx.set(dut.wb.payload.reg, rd)
                    ctx.set(dut.wb.payload.value, result)
                    ctx.set(dut.wb.valid, 1)
                else:
                    print()
                retired += 1

            if in_valid and ctx.get(dut.inp.ready):
                sent += 1

            await ctx.tick()
        else:
            raise Exception(f"only retired {retired} of {len(program)} "
                            "instructions in 200 cycles")

        for r, value in expected.items():
            actual = registers.get(r)
            assert actual == value, \
                    f"x{r} should be 0x{value:x} but is {actual!r}"
        print("PASS")

    sim.add_testbench(process)

    with sim.write_vcd(vcd_file="decode.vcd", gtkw_file="decode.gtkw", traces=ports):
        sim.run()
