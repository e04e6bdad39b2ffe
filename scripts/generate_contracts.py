#!/usr/bin/env python3

from __future__ import annotations

import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from mcp_servers.chrome.server.contract import contract_snapshot  # noqa: E402


def render_contract(snapshot: dict) -> str:
    return json.dumps(snapshot, ensure_ascii=False, indent=2) + "\n"


def main() -> int:
    out_dir = ROOT / "contracts"
    out_dir.mkdir(parents=True, exist_ok=True)

    out_json = out_dir / "chrome_tools.json"
    out_json.write_text(render_contract(contract_snapshot()), encoding="utf-8")

    print(f"Wrote: {out_json}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
