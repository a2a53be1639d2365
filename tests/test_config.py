import unittest
from unittest.mock import patch

from raffle.config import (
    DEFAULT_ENTRANCE_FEE,
    DEFAULT_KEY_HASH,
    RaffleSettings,
)


class RaffleSettingsTests(unittest.TestCase):
    def test_defaults(self):
        settings = RaffleSettings.from_env({})
        self.assertEqual(settings.name, "default")
        self.assertEqual(settings.entrance_fee, DEFAULT_ENTRANCE_FEE)
        self.assertEqual(settings.interval_seconds, 30)
        self.assertEqual(settings.key_hash, DEFAULT_KEY_HASH)
        self.assertEqual(settings.subscription_id, "local")
        self.assertEqual(settings.request_confirmations, 3)
        self.assertEqual(settings.num_words, 1)
        self.assertEqual(settings.keeper_poll_seconds, 5.0)

    def test_reads_environment(self):
        settings = RaffleSettings.from_env(
            {
                "RAFFLE_NAME": "weekly",
                "RAFFLE_ENTRANCE_FEE": "0x10",
                "RAFFLE_INTERVAL_SECONDS": " 600 ",
                "VRF_KEY_HASH": "0xlane",
                "VRF_SUBSCRIPTION_ID": "77",
                "VRF_CALLBACK_GAS_LIMIT": "250000",
                "VRF_REQUEST_CONFIRMATIONS": "5",
                "VRF_NUM_WORDS": "2",
                "KEEPER_POLL_SECONDS": "0.5",
            }
        )
        self.assertEqual(settings.name, "weekly")
        self.assertEqual(settings.entrance_fee, 16)
        self.assertEqual(settings.interval_seconds, 600)
        self.assertEqual(settings.callback_gas_limit, 250_000)
        self.assertEqual(settings.keeper_poll_seconds, 0.5)

        self.assertEqual(settings.key_hash, "0xlane")
        self.assertEqual(settings.subscription_id, "77")
        self.assertEqual(settings.request_confirmations, 5)
        self.assertEqual(settings.num_words, 2)

    def test_invalid_integer_names_variable(self):
        with self.assertRaises(ValueError) as ctx:
            RaffleSettings.from_env({"RAFFLE_INTERVAL_SECONDS": "soon"})
        self.assertIn("RAFFLE_INTERVAL_SECONDS", str(ctx.exception))

        with self.assertRaises(ValueError) as ctx:
            RaffleSettings.from_env({"KEEPER_POLL_SECONDS": "often"})
        self.assertIn("KEEPER_POLL_SECONDS", str(ctx.exception))

    def test_non_positive_values_rejected(self):
        with self.assertRaises(ValueError):
            RaffleSettings(entrance_fee=0)
        with self.assertRaises(ValueError):
            RaffleSettings.from_env({"VRF_NUM_WORDS": "-1"})
        with self.assertRaises(ValueError):
            RaffleSettings(keeper_poll_seconds=0)
        with self.assertRaises(ValueError):
            RaffleSettings(name="")

    @patch("raffle.config.load_dotenv")
    def test_from_process_environment_loads_dotenv(self, mock_load_dotenv):
        with patch.dict("os.environ", {"RAFFLE_NAME": "from-env"}, clear=True):
            settings = RaffleSettings.from_env()
        mock_load_dotenv.assert_called_once_with()
        self.assertEqual(settings.name, "from-env")


if __name__ == "__main__":
    unittest.main()
