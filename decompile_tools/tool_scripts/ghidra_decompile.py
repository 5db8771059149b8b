# Ghidra headless post-script: decompile every function of the imported
# program into a single file.
#
#   analyzeHeadless <project-dir> <name> -import <binary> \
#       -scriptPath <this dir> -postscript ghidra_decompile.py <output-file>
#
# Runs inside Ghidra's Jython interpreter. Progress goes to stderr as
# "#DECOMPILE-PROGRESS,<current>,<total>,<function name>".
# @category Decompiler
import sys

from ghidra.app.decompiler import DecompInterface
from ghidra.util.task import ConsoleTaskMonitor

PROGRESS_MARKER = "#DECOMPILE-PROGRESS"
TIMEOUT_SECONDS = 60


def report(current, total, label):
    sys.stderr.write("%s,%d,%d,%s\n" % (PROGRESS_MARKER, current, total, label))
    sys.stderr.flush()


def main():
    args = getScriptArgs()
    if len(args) < 1:
        printerr("usage: ghidra_decompile.py <output-file>")
        return

    decompiler = DecompInterface()
    decompiler.openProgram(currentProgram)
    monitor = ConsoleTaskMonitor()

    functions = list(currentProgram.getFunctionManager().getFunctions(True))
    total = len(functions)

    out = open(args[0], "w")
    try:
        for index, function in enumerate(functions):
            report(index + 1, total, function.getName())
            result = decompiler.decompileFunction(function, TIMEOUT_SECONDS, monitor)
            if result is None or not result.decompileCompleted():
                out.write("// %s: decompilation failed\n\n" % function.getName())
                continue
            out.write(result.getDecompiledFunction().getC())
            out.write("\n")
    finally:
        out.close()
        decompiler.dispose()


main()
