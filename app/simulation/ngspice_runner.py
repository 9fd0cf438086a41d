"""
simulation/ngspice_runner.py

Handles execution of ngspice simulations
"""

import asyncio
import logging
import os
import platform
import shutil
import subprocess
from datetime import datetime

from .result_parser import ResultParser, SolverResults, analysis_type_of

logger = logging.getLogger(__name__)

SIMULATION_TIMEOUT = 60


class SolverError(RuntimeError):
    """The solver could not produce results for a netlist."""

    def __init__(self, message: str, netlist: str = "", stdout: str = "", stderr: str = ""):
        super().__init__(message)
        self.netlist = netlist
        self.stdout = stdout
        self.stderr = stderr


class NgspiceRunner:
    """Runs ngspice simulations and manages output files"""

    def __init__(self, output_dir="simulation_output", timeout=SIMULATION_TIMEOUT):
        self.output_dir = output_dir
        self.timeout = timeout
        os.makedirs(self.output_dir, exist_ok=True)
        self.ngspice_cmd = None

    def find_ngspice(self):
        """Find ngspice executable on the system"""
        # Try PATH lookup first (works cross-platform)
        which_result = shutil.which("ngspice")
        if which_result:
            self.ngspice_cmd = which_result
            return which_result

        system = platform.system()
        if system == "Windows":
            possible_paths = [
                r"C:\Program Files\Spice64\bin\ngspice.exe",
                r"C:\Program Files\ngspice\bin\ngspice.exe",
                r"C:\ngspice\bin\ngspice.exe",
            ]
        elif system == "Linux":
            possible_paths = ["/usr/bin/ngspice", "/usr/local/bin/ngspice"]
        elif system == "Darwin":
            possible_paths = ["/usr/local/bin/ngspice", "/opt/homebrew/bin/ngspice"]
        else:
            possible_paths = []

        for cmd in possible_paths:
            if os.path.exists(cmd):
                self.ngspice_cmd = cmd
                return cmd

        logger.warning("ngspice executable not found")
        return None

    def run_simulation(self, netlist_content):
        """
        Run ngspice in batch mode on the given netlist

        Returns:
            tuple: (success: bool, output_file: str, stdout: str, stderr: str)
        """
        if self.ngspice_cmd is None and self.find_ngspice() is None:
            return False, None, "", "ngspice executable not found"

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        netlist_filename = os.path.join(self.output_dir, f"netlist_{timestamp}.cir")
        output_filename = os.path.join(self.output_dir, f"output_{timestamp}.txt")

        try:
            with open(netlist_filename, "w") as f:
                f.write(netlist_content)
        except OSError as e:
            return False, None, "", f"Failed to write netlist: {e}"

        try:
            result = subprocess.run(
                [self.ngspice_cmd, "-b", netlist_filename, "-o", output_filename],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return False, None, "", f"Simulation timed out (>{self.timeout} seconds)"
        except OSError as e:
            return False, None, "", f"Simulation error: {e}"

        if os.path.exists(output_filename):
            logger.debug("ngspice wrote %s", output_filename)
            return True, output_filename, result.stdout, result.stderr
        return False, None, result.stdout, result.stderr or "Output file not created"

    def read_output(self, output_filename):
        """Read simulation output file"""
        with open(output_filename, "r") as f:
            return f.read()

    def solve_sync(self, netlist: str) -> SolverResults:
        """
        Run a netlist and parse its results.

        Raises:
            SolverError: ngspice is missing, failed, or its output is unreadable.
        """
        success, output_file, stdout, stderr = self.run_simulation(netlist)
        if not success:
            raise SolverError(stderr or "Simulation failed", netlist=netlist, stdout=stdout, stderr=stderr)
        try:
            output = self.read_output(output_file)
        except OSError as e:
            raise SolverError(f"Error reading output: {e}", netlist=netlist, stdout=stdout, stderr=stderr) from e
        return ResultParser.parse(output, analysis_type_of(netlist))

    async def solve(self, netlist: str) -> SolverResults:
        """Run solve_sync on a worker thread."""
        return await asyncio.to_thread(self.solve_sync, netlist)
