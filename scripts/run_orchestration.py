import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to pythonpath
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from app.context import init_context
from fulfillment.csv_io import export_csv, parse_csv
from fulfillment.models import OrchestrationMode

logging.basicConfig(level=logging.INFO)


async def main(csv_path: Path, mode: OrchestrationMode, output: Path | None):
    context = init_context()
    items = parse_csv(csv_path.read_text(encoding="utf-8-sig"))
    await context.store.replace_all(items)
    print(f"Loaded {len(items)} gifts from {csv_path}")

    report = await context.engine.run(mode)
    for outcome in report.results:
        line = f"{outcome.name}: {outcome.status.value}"
        if outcome.error:
            line += f" ({outcome.error})"
        print(line)
    print(f"Orchestration finished: {report.processed} items processed in mode {mode.value}")

    if output is not None:
        output.write_text(export_csv(await context.store.all()), encoding="utf-8")
        print("Exported results to", output)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run one orchestration batch over a gift CSV")
    parser.add_argument("csv", type=Path)
    parser.add_argument(
        "--mode",
        type=OrchestrationMode,
        choices=list(OrchestrationMode),
        default=OrchestrationMode.DISCOVERY,
    )
    parser.add_argument("--output", type=Path, default=None)
    args = parser.parse_args()

    asyncio.run(main(args.csv, args.mode, args.output))
