import asyncio
import json
import sys

from gamevault_app import create_search_service


async def main(query: str) -> int:
    service = create_search_service()
    service.warm_up()
    try:
        result = await service.search_games(query, page=1)
    finally:
        await service.close()

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0 if result['success'] else 1


if __name__ == '__main__':
    # Usage: python run.py "search terms"
    query = ' '.join(sys.argv[1:]) or 'portal'
    raise SystemExit(asyncio.run(main(query)))
