# Writes the decode stage out as Verilog, for use in a surrounding core
# written in something else, or just to look at what comes out.

import argparse

from amaranth.back import verilog

from rvdecode.stage import DecodeStage

parser = argparse.ArgumentParser(
    prog = "gen-decode",
    description = "Script for generating Verilog for the RV32I decode stage",
)
parser.add_argument('--control-flow', help = 'also decode jumps, branches, loads and stores',
                    required = False, action = 'store_true')
parser.add_argument('-o', '--output', help = 'output file (default decode.v)',
                    required = False, default = 'decode.v')
args = parser.parse_args()

dut = DecodeStage(control_flow = args.control_flow)

print(f"Generating decode stage (control flow decode "
      f"{'on' if args.control_flow else 'off'}) into {args.output}")

verilog_src = verilog.convert(dut, name = "decode_stage")
with open(args.output, "w") as v:
    v.write(verilog_src)
