import unittest

from gaslighting.config import DEFAULT_CONFIG, DEFAULT_MESSAGES, Config
from gaslighting.selector import is_selected, line_hash, select

SAMPLE_LINES = [
    "local x = compute_everything(y)",
    "return self._cache[key]",
    "for i in range(len(items)):",
    "if (err != nil) { return err }",
    "const total = items.reduce((a, b) => a + b, 0);",
    "SELECT * FROM users WHERE id = 1;",
    "printf(\"%d\\n\", value);",
    "ünïcödé_variable = 'naïve'",
    "x",
    "",
]


class LineHashTests(unittest.TestCase):
    def test_polynomial_hash_matches_lua_plugin(self) -> None:
        # h1 = 97*31^2 + 98*31 + 99, h2 = 97*37^2 + 98*37 + 99
        self.assertEqual(line_hash("abc"), (96354, 136518))

    def test_empty_line_hashes_to_zero(self) -> None:
        self.assertEqual(line_hash(""), (0, 0))

    def test_halves_stay_within_32_bits(self) -> None:
        h1, h2 = line_hash("a fairly long line of code " * 20)
        self.assertLess(h1, 0xFFFFFFFF)
        self.assertLess(h2, 0xFFFFFFFF)

    def test_hash_uses_utf8_bytes(self) -> None:
        # "é" is two bytes in UTF-8; a code-point hash would give one step.
        self.assertEqual(line_hash("é"), ((0xC3 * 31 + 0xA9), (0xC3 * 37 + 0xA9)))

    def test_sha256_variant_is_deterministic_and_differs(self) -> None:
        first = line_hash("return self._cache[key]", "sha256")
        second = line_hash("return self._cache[key]", "sha256")
        self.assertEqual(first, second)
        self.assertNotEqual(first, line_hash("return self._cache[key]"))


class SelectTests(unittest.TestCase):
    def test_pinned_message_for_known_line(self) -> None:
        config = Config(selection_chance=100)
        self.assertEqual(select("abc", config), DEFAULT_MESSAGES[8])

    def test_threshold_is_strictly_less_than(self) -> None:
        # "abc" has selection value 96354 % 100 == 54.
        self.assertIsNone(select("abc", Config(selection_chance=54)))
        self.assertIsNotNone(select("abc", Config(selection_chance=55)))

    def test_chance_100_always_selects(self) -> None:
        config = Config(selection_chance=100)
        for line in SAMPLE_LINES:
            self.assertIsNotNone(select(line, config), line)

    def test_deterministic(self) -> None:
        for line in SAMPLE_LINES:
            self.assertEqual(select(line, DEFAULT_CONFIG), select(line, DEFAULT_CONFIG))

    def test_threshold_monotonicity(self) -> None:
        for line in SAMPLE_LINES:
            for chance in range(1, 100):
                if select(line, Config(selection_chance=chance)) is not None:
                    self.assertIsNotNone(select(line, Config(selection_chance=chance + 1)), (line, chance))

    def test_pool_size_never_changes_selection(self) -> None:
        pools = [("only",), ("a", "b"), DEFAULT_MESSAGES, tuple("m{}".format(i) for i in range(97))]
        for line in SAMPLE_LINES:
            for chance in (1, 5, 30, 60):
                verdicts = {select(line, Config(selection_chance=chance, messages=pool)) is not None for pool in pools}
                self.assertEqual(len(verdicts), 1, (line, chance))

    def test_selected_message_comes_from_pool(self) -> None:
        config = Config(selection_chance=100, messages=("one", "two", "three"))
        for line in SAMPLE_LINES:
            self.assertIn(select(line, config), config.messages)

    def test_selection_agrees_with_hash_split(self) -> None:
        config = Config(selection_chance=37, hash_function="sha256")
        for line in SAMPLE_LINES:
            selection_half, _ = line_hash(line, "sha256")
            self.assertEqual(select(line, config) is not None, is_selected(selection_half, 37))

    def test_empty_pool_yields_no_message(self) -> None:
        self.assertIsNone(select("abc", Config(selection_chance=100, messages=())))


if __name__ == "__main__":
    unittest.main()
