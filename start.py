#!/usr/bin/env python3
"""
Anime Agent Backend - Startup Script
Runs the FastAPI backend under uvicorn and waits for it to report healthy.
"""

import os
import sys
import subprocess
import signal
import time
import threading
from pathlib import Path

import requests

DEFAULT_PORT = 8788


# Colors for console output
class Colors:
    HEADER = '\033[95m'
    OKBLUE = '\033[94m'
    OKGREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


def print_header(text):
    print(f"\n{Colors.HEADER}{Colors.BOLD}{text}{Colors.ENDC}")


def print_success(text):
    print(f"{Colors.OKGREEN}{text}{Colors.ENDC}")


def print_info(text):
    print(f"{Colors.OKBLUE}{text}{Colors.ENDC}")


def print_warning(text):
    print(f"{Colors.WARNING}{text}{Colors.ENDC}")


def print_error(text):
    print(f"{Colors.FAIL}{text}{Colors.ENDC}")


def load_env_file(path: Path) -> None:
    """Populate os.environ with key/value pairs from a simple .env file."""
    if not path.exists():
        return

    try:
        with path.open('r', encoding='utf-8') as handle:
            for raw in handle:
                line = raw.strip()
                if not line or line.startswith('#') or '=' not in line:
                    continue
                key, value = line.split('=', 1)
                os.environ.setdefault(key.strip(), value.strip().strip('"').strip("'"))
    except OSError as exc:
        print_warning(f"Failed to load environment file {path}: {exc}")


class BackendProcess:
    def __init__(self, port: int, reload: bool = False):
        self.root_dir = Path(__file__).parent
        self.port = port
        self.health_url = f'http://localhost:{port}/health'
        self.process = None
        self.running = True
        self.cmd = [
            sys.executable, '-m', 'uvicorn',
            'anime_agent_backend.main:app',
            '--host', '0.0.0.0',
            '--port', str(port),
            '--app-dir', 'src/',
        ]
        if reload:
            self.cmd.append('--reload')

    def check_health(self) -> bool:
        try:
            response = requests.get(self.health_url, timeout=2)
        except requests.RequestException:
            return False
        return response.status_code == 200

    def wait_until_healthy(self, timeout: float = 30.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self.process.poll() is not None:
                return False
            if self.check_health():
                return True
            time.sleep(0.5)
        return False

    def start(self) -> bool:
        print_info("Starting backend...")
        env = os.environ.copy()
        src_path = str(self.root_dir / 'src')
        env['PYTHONPATH'] = f"{src_path}:{env['PYTHONPATH']}" if 'PYTHONPATH' in env else src_path

        try:
            self.process = subprocess.Popen(
                self.cmd,
                cwd=self.root_dir,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                universal_newlines=True,
                bufsize=1,
            )
        except OSError as e:
            print_error(f"Failed to start backend: {e}")
            return False

        threading.Thread(target=self._pipe_output, daemon=True).start()

        if self.wait_until_healthy():
            print_success("Backend started successfully")
            return True
        if self.process.poll() is not None:
            print_error("Backend exited during startup")
            return False
        print_warning("Backend started but health check failed")
        return True

    def stop(self):
        self.running = False
        if self.process and self.process.poll() is None:
            print_info("Stopping backend...")
            self.process.terminate()
            try:
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()
        print_success("Backend stopped")

    def _pipe_output(self):
        for line in iter(self.process.stdout.readline, ''):
            if not self.running:
                break
            if line.strip():
                print(f"[backend] {line.strip()}")

    def run(self) -> int:
        print_header("Anime Agent Backend Startup")

        def signal_handler(sig, frame):
            print_info("\nShutdown signal received...")
            self.stop()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        if not self.start():
            self.stop()
            return 1

        print_info(f"Backend API: http://localhost:{self.port}")
        print_info(f"A2A agent cards: http://localhost:{self.port}/a2a/agent/<agentId>/card")
        print_info("Press Ctrl+C to stop")

        try:
            while self.running:
                time.sleep(1)
                if self.process.poll() is not None:
                    print_error("Backend stopped unexpectedly")
                    self.running = False
        except KeyboardInterrupt:
            pass

        self.stop()
        return 0


def main():
    load_env_file(Path(__file__).parent / '.env')

    port_value = os.environ.get('ANIME_AGENT_PORT', str(DEFAULT_PORT))
    try:
        port = int(port_value)
    except ValueError:
        print_warning(f"Invalid ANIME_AGENT_PORT '{port_value}'. Using default {DEFAULT_PORT}.")
        port = DEFAULT_PORT

    if not os.environ.get('MAL_CLIENT_ID'):
        print_warning("MAL_CLIENT_ID is not set; MyAnimeList tools will fail")

    return BackendProcess(port, reload='--reload' in sys.argv).run()


if __name__ == "__main__":
    sys.exit(main())
