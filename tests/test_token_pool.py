import asyncio
import unittest

from cachetools import TTLCache

from token_pool import APPLE, SPOTIFY, CredentialProvider


class CountingFetcher:
    def __init__(self, results):
        self.results = list(results)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        await asyncio.sleep(0.01)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class CredentialProviderTests(unittest.IsolatedAsyncioTestCase):
    async def test_concurrent_callers_share_one_fetch(self):
        fetcher = CountingFetcher(["tok-1"])
        provider = CredentialProvider({SPOTIFY: fetcher})

        tokens = await asyncio.gather(*(provider.get(SPOTIFY) for _ in range(5)))

        self.assertEqual(tokens, ["tok-1"] * 5)
        self.assertEqual(fetcher.calls, 1)

    async def test_resolved_token_is_cached(self):
        fetcher = CountingFetcher(["tok-1", "tok-2"])
        provider = CredentialProvider({SPOTIFY: fetcher})

        self.assertEqual(await provider.get(SPOTIFY), "tok-1")
        self.assertEqual(await provider.get(SPOTIFY), "tok-1")
        self.assertEqual(fetcher.calls, 1)

        provider.invalidate(SPOTIFY)
        self.assertEqual(await provider.get(SPOTIFY), "tok-2")
        self.assertEqual(fetcher.calls, 2)

    async def test_failure_reaches_every_waiter_and_is_not_cached(self):
        fetcher = CountingFetcher([RuntimeError("auth down"), "tok-2"])
        provider = CredentialProvider({SPOTIFY: fetcher})

        results = await asyncio.gather(
            provider.get(SPOTIFY),
            provider.get(SPOTIFY),
            return_exceptions=True,
        )
        self.assertTrue(all(isinstance(r, RuntimeError) for r in results))
        self.assertEqual(fetcher.calls, 1)

        self.assertEqual(await provider.get(SPOTIFY), "tok-2")
        self.assertEqual(fetcher.calls, 2)

    async def test_providers_are_independent(self):
        spotify = CountingFetcher(["s"])
        apple = CountingFetcher(["a"])
        provider = CredentialProvider({SPOTIFY: spotify, APPLE: apple})

        self.assertEqual(await asyncio.gather(provider.get(SPOTIFY), provider.get(APPLE)), ["s", "a"])
        self.assertEqual((spotify.calls, apple.calls), (1, 1))

    async def test_empty_token_is_an_error(self):
        provider = CredentialProvider({SPOTIFY: CountingFetcher([""])})
        with self.assertRaises(RuntimeError):
            await provider.get(SPOTIFY)

    async def test_unknown_provider(self):
        provider = CredentialProvider({})
        with self.assertRaises(KeyError):
            await provider.get("deezer")

    async def test_expired_token_is_refetched(self):
        fetcher = CountingFetcher(["tok-1", "tok-2"])
        cache = TTLCache(maxsize=4, ttl=0.01)
        provider = CredentialProvider({SPOTIFY: fetcher}, cache=cache)

        self.assertEqual(await provider.get(SPOTIFY), "tok-1")
        await asyncio.sleep(0.05)
        self.assertEqual(await provider.get(SPOTIFY), "tok-2")


if __name__ == "__main__":
    unittest.main()
