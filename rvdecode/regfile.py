# 32-bit x 32 register file with two read ports and write-to-read forwarding.

from amaranth import *
from amaranth.lib.wiring import *
from amaranth.lib.memory import Memory

from rvdecode import AlwaysReady, oneof
from rvdecode.uop import RegRead, RegWrite

class RegFile(Component):
    """The register file holds x0..x31 for the decode stage.

    Reads are combinational: whatever index is on a read port this cycle comes
    back on its resp this cycle. Writes land at the clock edge, but a read of
    the register being written in the same cycle sees the new value, so an
    instruction decoded right behind the one producing its operand doesn't
    pick up a stale copy.

    x0 always reads as zero, and writes to it are dropped.

    Attributes
    ----------
    rp1, rp2 (port): read ports. Responses are zero when cmd.valid is low.
    write_cmd (input): write port, driven by writeback. valid is the write
        enable.
    """
    rp1: In(RegRead())
    rp2: In(RegRead())

    write_cmd: In(AlwaysReady(RegWrite()))

    def elaborate(self, platform):
        m = Module()

        m.submodules.mem = mem = Memory(
            shape = unsigned(32),
            depth = 32,
            init = [],
        )

        wp = mem.write_port()
        m.d.comb += [
            wp.addr.eq(self.write_cmd.payload.reg),
            wp.data.eq(self.write_cmd.payload.value),
            # Block writes to x0.
            wp.en.eq((self.write_cmd.payload.reg != 0) & self.write_cmd.valid),
        ]

        for port in [self.rp1, self.rp2]:
            # Asynchronous read, so the stored value is available in the same
            # cycle as the address. Forwarding is applied on top of it below.
            rp = mem.read_port(domain = "comb")
            m.d.comb += rp.addr.eq(port.cmd.payload)

            # Disabled ports and x0 fall through both cases and read as zero.
            live = port.cmd.valid & (port.cmd.payload != 0)
            forward = (self.write_cmd.valid
                       & (self.write_cmd.payload.reg == port.cmd.payload))
            m.d.comb += port.resp.eq(oneof([
                (live & forward, self.write_cmd.payload.value),
                (live & ~forward, rp.data),
            ]))

        return m
