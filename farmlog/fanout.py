# farmlog/fanout.py
import asyncio


async def gather_all(*aws):
    """
    Await every awaitable concurrently. The first failure is raised only once
    all of them have settled, so one failing branch never cuts the others short.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)
