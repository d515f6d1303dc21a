import random
from typing import List, Optional

from userdir.schemas.user import UserCreate

FIRST_NAMES = [
    "Ada", "Alan", "Barbara", "Carlos", "Chen", "Dana", "Elena", "Farid", "Grace", "Hugo",
    "Ines", "Jamal", "Kofi", "Lucia", "Marta", "Nadia", "Omar", "Priya", "Quinn", "Rosa",
    "Sven", "Tomas", "Uma", "Valeria", "Wei", "Yusuf", "Zoe",
]
LAST_NAMES = [
    "Alvarez", "Bauer", "Costa", "Dubois", "Evans", "Fischer", "Garcia", "Haddad", "Ito",
    "Jensen", "Kowalski", "Lopez", "Moreau", "Nakamura", "Okafor", "Petrov", "Rossi",
    "Silva", "Tanaka", "Urban", "Varga", "Weber", "Yilmaz", "Zhang",
]
EMAIL_DOMAINS = ["example.com", "example.org", "example.net", "mail.example.com"]


class UserGenerator:
    """Random but plausible users for bulk loads. Seed it for reproducible output."""

    def __init__(self, seed: Optional[int] = None, min_age: int = 18, max_age: int = 80):
        self.rng = random.Random(seed)
        self.min_age = min_age
        self.max_age = max_age

    def generate_one(self) -> UserCreate:
        first = self.rng.choice(FIRST_NAMES)
        last = self.rng.choice(LAST_NAMES)
        # suffix keeps collisions rare across a 10k load
        email = f"{first}.{last}{self.rng.randint(1, 99999)}@{self.rng.choice(EMAIL_DOMAINS)}".lower()
        return UserCreate(name=f"{first} {last}", age=self.rng.randint(self.min_age, self.max_age), email=email)

    def generate(self, count: int) -> List[UserCreate]:
        return [self.generate_one() for _ in range(count)]
