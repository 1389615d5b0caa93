# Records and port signatures passed between decode and its neighbors.

from amaranth import *
from amaranth.lib.data import *
from amaranth.lib.wiring import *

from rvdecode import AlwaysReady
from rvdecode.isa import AluFunc

def FetchCmd():
    """Instruction word and its address, as delivered by fetch."""
    return Signature({
        'inst': Out(32),
        'pc': Out(32),
    })

def RegWrite(addrbits = 5):
    return Signature({
        'reg': Out(addrbits),
        'value': Out(32),
    })

# One register file read port. cmd.valid is the read enable; resp is zero
# whenever the port is disabled, so responses can be OR'd.
def RegRead(addrbits = 5):
    return Signature({
        'cmd': Out(AlwaysReady(addrbits)),
        'resp': In(32),
    })

class AluControl(Struct):
    carry_in: unsigned(1)
    reverse: unsigned(1)
    unsigned: unsigned(1)
    equal: unsigned(1)
    invert: unsigned(1)
    # Clear bit 0 of the computed jump target (JALR).
    align: unsigned(1)
    fn: AluFunc

class Control(Struct):
    """Output of the control decoder. Everything is zero (and fn is ADD)
    unless the instruction is recognized, in which case valid is set."""
    alu: AluControl
    valid: unsigned(1)

    jump: unsigned(1)
    branch: unsigned(1)
    load: unsigned(1)
    store: unsigned(1)
    # log2 of the access width in bytes, for loads and stores.
    mem_size: unsigned(2)
    load_unsigned: unsigned(1)

class MicroOp(Struct):
    """A decoded instruction, as handed to execute.

    op1 and op2 feed the arithmetic unit; op3 and op4 are summed downstream to
    form jump/branch targets and memory addresses.
    """
    op1: unsigned(32)
    op2: unsigned(32)
    op3: unsigned(32)
    op4: unsigned(32)

    alu: AluControl

    # Hazard tracking. rsN is zero unless rsN_used.
    rs1: unsigned(5)
    rs1_used: unsigned(1)
    rs2: unsigned(5)
    rs2_used: unsigned(1)

    # Write-back controls. rd is zero unless rd_write.
    rd: unsigned(5)
    rd_write: unsigned(1)
    jump: unsigned(1)
    branch: unsigned(1)
    load: unsigned(1)
    store: unsigned(1)
    mem_size: unsigned(2)
    load_unsigned: unsigned(1)
    illegal: unsigned(1)

    # Carried along for trap reporting and tracing.
    pc: unsigned(32)
    inst: unsigned(32)
