import unittest

from miles_core.destinations import (
    DESTINATION_KEYWORDS,
    DESTINATIONS,
    REGION_CARIBBEAN,
    REGION_EUROPE,
    REGION_NORTHEAST,
    REGION_PATTERNS,
    REGION_USA,
)


class DestinationTableTests(unittest.TestCase):
    def test_keywords_are_lowercase(self) -> None:
        for destination, keywords in DESTINATION_KEYWORDS.items():
            with self.subTest(destination=destination):
                self.assertTrue(keywords)
                self.assertEqual([keyword.lower() for keyword in keywords], list(keywords))

    def test_region_only_destinations_are_not_keyword_entries(self) -> None:
        for name in ("Maceió", "João Pessoa", "Curaçao"):
            with self.subTest(name=name):
                self.assertNotIn(name, DESTINATION_KEYWORDS)
        self.assertEqual(len(DESTINATION_KEYWORDS), len([d for d in DESTINATIONS if d.keywords]))

    def test_keyword_table_is_read_only(self) -> None:
        with self.assertRaises(TypeError):
            DESTINATION_KEYWORDS["Atlantis"] = ("atlantis",)  # type: ignore[index]

    def test_keyword_order_is_preserved(self) -> None:
        self.assertEqual(list(DESTINATION_KEYWORDS)[:3], ["Miami", "Orlando", "New York"])
        self.assertEqual(DESTINATION_KEYWORDS["Miami"][0], "miami")


class RegionPatternTests(unittest.TestCase):
    def _region(self, name: str):
        return next(region for region in REGION_PATTERNS if region.name == name)

    def test_regions_are_checked_in_fixed_order(self) -> None:
        self.assertEqual(
            [region.name for region in REGION_PATTERNS],
            [REGION_USA, REGION_EUROPE, REGION_NORTHEAST, REGION_CARIBBEAN],
        )

    def test_region_city_lists(self) -> None:
        self.assertEqual(
            set(self._region(REGION_USA).destinations),
            {"miami", "orlando", "new york", "los angeles", "las vegas"},
        )
        self.assertEqual(
            set(self._region(REGION_EUROPE).destinations),
            {"lisboa", "paris", "londres", "london", "madrid", "madri", "roma", "rome", "amsterdam", "barcelona"},
        )
        self.assertEqual(
            set(self._region(REGION_NORTHEAST).destinations),
            {"salvador", "recife", "fortaleza", "natal", "maceió", "joão pessoa"},
        )
        self.assertEqual(
            set(self._region(REGION_CARIBBEAN).destinations),
            {"cancun", "cancún", "punta cana", "aruba", "curaçao"},
        )

    def test_patterns_match_whole_words(self) -> None:
        usa = self._region(REGION_USA).pattern
        self.assertTrue(usa.search("viagem aos estados unidos"))
        self.assertTrue(usa.search("Conhecer a AMERICA"))
        self.assertFalse(usa.search("usar as milhas"))
        self.assertTrue(self._region(REGION_EUROPE).pattern.search("mochilão pela europa"))


if __name__ == "__main__":
    unittest.main()
