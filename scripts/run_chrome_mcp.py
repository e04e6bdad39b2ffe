#!/usr/bin/env python3
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

print(
    f"[mcp] chrome={os.environ.get('CHROME_PATH', 'auto')} | "
    f"profile={os.environ.get('MCP_CHROME_PROFILE') or 'temp'} | "
    f"port={os.environ.get('MCP_CHROME_PORT') or 'free'} | "
    f"headless={os.environ.get('MCP_HEADLESS', '0')}",
    file=sys.stderr,
)

from mcp_servers.chrome.main import main  # noqa: E402

if __name__ == "__main__":
    main()
