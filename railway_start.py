"""
Railway unified startup script.

Handles:
    1. Checks the configuration (Telegram token, source URLs)
    2. Starts FastAPI backend (uvicorn) in background
    3. Starts Telegram bot in foreground

Usage:
    python railway_start.py          # full startup (api + bot)
    python railway_start.py --web    # web only (FastAPI)
    python railway_start.py --bot    # bot only
"""

import argparse
import os
import sys
import subprocess
import time

os.chdir(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ".")


def check_config(need_bot: bool) -> bool:
    """Print the effective source configuration; False when the bot cannot start."""
    import config_env as config

    print(f"  CNPJá:     {config.CNPJA_BASE_URL} (attempts={config.CNPJA_MAX_ATTEMPTS})")
    proxy = config.RECEITAWS_PROXY_URL or "direct"
    print(f"  ReceitaWS: {config.RECEITAWS_BASE_URL} via {proxy} (attempts={config.RECEITAWS_MAX_ATTEMPTS})")
    print(f"  BrasilAPI: {config.BRASILAPI_BASE_URL} (attempts={config.BRASILAPI_MAX_ATTEMPTS})")
    if need_bot and not config.TELEGRAM_TOKEN:
        print("  TELEGRAM_TOKEN is not set -- the bot cannot start")
        return False
    return True


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--web", action="store_true", help="Start FastAPI only")
    parser.add_argument("--bot", action="store_true", help="Start bot only")
    args = parser.parse_args()

    from config_env import PORT
    port = str(PORT)

    print("=" * 60)
    print("  Consulta CNPJ -- Railway Startup")
    print("=" * 60)

    print("\n[1/2] Checking configuration...")
    if not check_config(need_bot=not args.web):
        sys.exit(1)

    print("\n[2/2] Starting services...")

    if args.web:
        print(f"  Starting FastAPI on port {port}...")
        os.execvp(
            sys.executable,
            [sys.executable, "-m", "uvicorn", "backend.app:app",
             "--host", "0.0.0.0", "--port", port],
        )

    elif args.bot:
        print("  Starting Telegram bot...")
        os.execvp(sys.executable, [sys.executable, "bot.py"])

    else:
        # Full mode: FastAPI in background, bot in foreground
        print(f"  Starting FastAPI on port {port} (background)...")
        web_proc = subprocess.Popen(
            [sys.executable, "-m", "uvicorn", "backend.app:app",
             "--host", "0.0.0.0", "--port", port],
            stdout=sys.stdout,
            stderr=sys.stderr,
        )
        time.sleep(2)

        print("  Starting Telegram bot (foreground)...")
        try:
            subprocess.run([sys.executable, "bot.py"], check=False)
        finally:
            web_proc.terminate()


if __name__ == "__main__":
    main()
