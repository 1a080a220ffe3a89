from enum import Enum


class Currency(str, Enum):
    INR = "INR"
    USD = "USD"
    EUR = "EUR"

    def get_symbol(self) -> str:
        match self:
            case Currency.INR:
                return "₹"
            case Currency.USD:
                return "$"
            case Currency.EUR:
                return "€"
