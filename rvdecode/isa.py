# RV32I instruction word layout and the encodings the decode stage cares about.

from amaranth import *
from amaranth.lib.data import *
from amaranth.lib.enum import *

# Low two bits of every 32-bit RV32I instruction. Anything else is either a
# compressed instruction or a longer encoding, neither of which we support.
QUADRANT_32 = 0b11

class Opcode(Enum, shape = unsigned(5)):
    """Opcode groups, i.e. bits 6:2 of the instruction word."""
    LOAD = 0b00000
    MISC_MEM = 0b00011
    ALUIMM = 0b00100
    AUIPC = 0b00101
    STORE = 0b01000
    ALUREG = 0b01100
    LUI = 0b01101
    BRANCH = 0b11000
    JALR = 0b11001
    JAL = 0b11011
    SYSTEM = 0b11100

class Funct7(Enum, shape = unsigned(7)):
    # The only two funct7 values RV32I defines.
    NORMAL = 0b0000000
    # SUB, SRA, SRAI
    ALT = 0b0100000

class AluFunc(Enum, shape = unsigned(3)):
    """Function select for the downstream arithmetic unit.

    The modifier bits in AluControl refine these:

    - ADD with carry_in is a subtract (op2 complemented, plus one).
    - COMPARE subtracts and reports less-than; unsigned chooses the unsigned
      flavor, equal switches to an equality test, invert negates the outcome.
    - SHIFT shifts right; unsigned means logical (zero fill), and reverse
      bit-reverses the operand going in and the result coming out, which turns
      it into a left shift.
    """
    ADD = 0
    COMPARE = 1
    XOR = 2
    OR = 3
    AND = 4
    SHIFT = 5

class Instruction(Struct):
    """Fixed fields of a 32-bit instruction word, LSB first."""
    quadrant: unsigned(2)
    opcode: unsigned(5)
    rd: unsigned(5)
    funct3: unsigned(3)
    rs1: unsigned(5)
    rs2: unsigned(5)
    funct7: unsigned(7)
