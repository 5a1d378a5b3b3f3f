import tempfile
import unittest
from pathlib import Path

from chaosbot.config import DEFAULT_FETCH_TIMEOUT, DEFAULT_MAX_ATTACHMENT_BYTES, load_config
from chaosbot.errors import ConfigError
from chaosbot.models import Tier

from image_factory import make_ring


class LoadConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.rings = {}
        for name in ("daoists", "frens", "regulars"):
            path = self.root / f"ring_{name}.png"
            path.write_bytes(make_ring(64, 8))
            self.rings[name] = path
        self.environ = {
            "DISCORD_TOKEN": "token-value",
            "DAO_ROLE_DAOIST": "1001",
            "DAO_ROLE_FREN": "1002",
            "DAO_ROLE_REGULAR": "1003",
            "CHAOSRING_DAOISTS": str(self.rings["daoists"]),
            "CHAOSRING_FRENS": str(self.rings["frens"]),
            "CHAOSRING_REGULARS": str(self.rings["regulars"]),
        }

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_complete_environment_loads(self) -> None:
        config = load_config(self.environ)
        self.assertEqual(config.token, "token-value")
        self.assertEqual(config.role_ids, {Tier.DAOIST: 1001, Tier.FREN: 1002, Tier.REGULAR: 1003})
        self.assertEqual(config.overlay_paths[Tier.FREN], self.rings["frens"])
        self.assertEqual(config.overlay_for(Tier.REGULAR), self.rings["regulars"].read_bytes())
        self.assertIsNone(config.guild_id)
        self.assertEqual(config.max_attachment_bytes, DEFAULT_MAX_ATTACHMENT_BYTES)
        self.assertEqual(config.fetch_timeout, DEFAULT_FETCH_TIMEOUT)

    def test_token_is_hidden_from_repr(self) -> None:
        self.assertNotIn("token-value", repr(load_config(self.environ)))

    def test_config_is_immutable(self) -> None:
        config = load_config(self.environ)
        with self.assertRaises(AttributeError):
            config.token = "other"  # type: ignore[misc]
        with self.assertRaises(TypeError):
            config.role_ids[Tier.FREN] = 2  # type: ignore[index]
        with self.assertRaises(TypeError):
            config.overlay_paths[Tier.FREN] = self.root / "other.png"  # type: ignore[index]
        with self.assertRaises(TypeError):
            config.overlay_bytes[Tier.FREN] = b""  # type: ignore[index]

    def test_config_copies_the_mappings_it_is_given(self) -> None:
        config = load_config(self.environ)
        role_ids = dict(config.role_ids)
        rebuilt = type(config)(
            token="t",
            role_ids=role_ids,
            overlay_paths=dict(config.overlay_paths),
            overlay_bytes=dict(config.overlay_bytes),
        )
        role_ids[Tier.FREN] = 2
        self.assertEqual(rebuilt.role_ids[Tier.FREN], 1002)

    def test_every_missing_variable_is_reported(self) -> None:
        with self.assertRaises(ConfigError) as ctx:
            load_config({})
        problems = " ".join(ctx.exception.problems)
        for name in self.environ:
            self.assertIn(name, problems)

    def test_invalid_role_id_is_rejected(self) -> None:
        self.environ["DAO_ROLE_FREN"] = "frens"
        with self.assertRaises(ConfigError) as ctx:
            load_config(self.environ)
        self.assertIn("DAO_ROLE_FREN", str(ctx.exception))

    def test_missing_overlay_file_is_rejected(self) -> None:
        self.environ["CHAOSRING_FRENS"] = str(self.root / "nope.png")
        with self.assertRaises(ConfigError) as ctx:
            load_config(self.environ)
        self.assertIn("CHAOSRING_FRENS", str(ctx.exception))

    def test_overlay_that_is_not_an_image_is_rejected(self) -> None:
        self.rings["daoists"].write_text("not an image", encoding="utf-8")
        with self.assertRaises(ConfigError) as ctx:
            load_config(self.environ)
        self.assertIn("CHAOSRING_DAOISTS", str(ctx.exception))

    def test_guild_id_is_parsed(self) -> None:
        self.environ["GUILD_ID"] = "987654321"
        self.assertEqual(load_config(self.environ).guild_id, 987654321)

    def test_invalid_guild_id_is_rejected(self) -> None:
        self.environ["GUILD_ID"] = "guild"
        with self.assertRaises(ConfigError):
            load_config(self.environ)

    def test_tunables_are_read_and_invalid_values_fall_back(self) -> None:
        self.environ["CHAOSBOT_MAX_ATTACHMENT_BYTES"] = "1024"
        self.environ["CHAOSBOT_MAX_IMAGE_PIXELS"] = "2048"
        self.environ["CHAOSBOT_FETCH_TIMEOUT"] = "soon"
        with self.assertLogs("chaosbot.utils", level="WARNING"):
            config = load_config(self.environ)
        self.assertEqual(config.max_attachment_bytes, 1024)
        self.assertEqual(config.max_image_pixels, 2048)
        self.assertEqual(config.fetch_timeout, DEFAULT_FETCH_TIMEOUT)


if __name__ == "__main__":
    unittest.main()
