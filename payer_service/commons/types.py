from enum import Enum


class CountryCode(str, Enum):
    US = "US"
    CA = "CA"
    AU = "AU"
