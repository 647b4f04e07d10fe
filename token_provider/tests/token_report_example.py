import asyncio
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

sys.path.append(str(Path(__file__).parent.parent.parent))
from token_provider.config import ProviderConfig  # noqa: E402
from token_provider.token_provider import TokenProvider  # noqa: E402

load_dotenv()

# Live run against the real upstreams, needs BIRDEYE_API_KEY and HELIUS_API_KEY
TOKEN_ADDRESS = "2weMjPLLybRMMva1fM3U31goWWrCpF59CHWNhnCJ9Vyh"


async def run_provider():
    provider = TokenProvider(ProviderConfig.from_env())
    try:
        processed = await provider.get_processed_token_data(TOKEN_ADDRESS)
        report = provider.format_token_data(processed)

        # Second call is served from the two-tier cache
        cached_report = await provider.get_formatted_token_report(TOKEN_ADDRESS)

        script_dir = Path(__file__).parent
        output_file = script_dir / f"{Path(__file__).stem}.yaml"

        yaml_content = {
            "processed_token_data": {
                "input": {"token_address": TOKEN_ADDRESS},
                "output": processed.model_dump(mode="json"),
            },
            "formatted_report": {"input": {"token_address": TOKEN_ADDRESS}, "output": report},
            "cached_report_matches": cached_report == report,
        }

        with open(output_file, "w", encoding="utf-8") as f:
            yaml.dump(yaml_content, f, allow_unicode=True, sort_keys=False)

        print(f"Results saved to {output_file}")

    finally:
        await provider.cleanup()


if __name__ == "__main__":
    asyncio.run(run_provider())
