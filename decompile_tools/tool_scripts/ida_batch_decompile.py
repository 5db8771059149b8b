# IDA batch-mode script: decompile all functions with Hex-Rays into
# <output-dir>/<input stem>.c and exit.
#
#   ida -A -B -M -o<dir> -S"ida_batch_decompile.py -o\"<dir>\"" <binary>
#
# Runs inside IDA's Python interpreter. Exit code 0 on success.
import os

import idaapi
import idc
import ida_auto
import ida_hexrays
import ida_nalt
import ida_pro

DECOMPILER_PLUGINS = ("hexrays", "hexx64", "hexarm", "hexarm64", "hexppc", "hexmips")


def output_dir_from_args(argv):
    for arg in argv[1:]:
        if arg.startswith("-o"):
            return arg[2:].strip('"')
    return os.getcwd()


def load_decompiler():
    if ida_hexrays.init_hexrays_plugin():
        return True
    for name in DECOMPILER_PLUGINS:
        if idaapi.load_plugin(name) and ida_hexrays.init_hexrays_plugin():
            return True
    return False


def main():
    output_dir = output_dir_from_args(idc.ARGV)
    ida_auto.auto_wait()

    if not load_decompiler():
        ida_pro.qexit(2)

    stem = os.path.splitext(os.path.basename(ida_nalt.get_input_file_path()))[0]
    output_path = os.path.join(output_dir, stem + ".c")
    flags = ida_hexrays.VDRUN_NEWFILE | ida_hexrays.VDRUN_SILENT | ida_hexrays.VDRUN_MAYSTOP
    ok = ida_hexrays.decompile_many(output_path, None, flags)
    ida_pro.qexit(0 if ok else 1)


main()
