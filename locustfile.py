from locust import HttpUser, task, between
import random

# Mix of clean, informal, protected and obfuscated messages
MESSAGES = [
    "hey everyone, good morning",
    "gg wp that was a close match",
    "trading my shiny Charizard.pk9, adamant nature",
    "f.u.c.k this game",
    "you are such an idiot",
    "fuuuuck you",
    "sh1t happens",
    "thanks for the help!",
]


class ModGuardUser(HttpUser):
    wait_time = between(1, 2)

    @task(5)
    def assess(self):
        self.client.post(
            "/assess",
            json={
                "text": random.choice(MESSAGES),
                "author_id": str(random.randint(1, 500)),
                "channel_id": "load-test",
            },
        )

    @task(1)
    def escalate(self):
        self.client.post(
            "/escalate",
            json={"violation_type": "DISRESPECTFUL", "violation_count": random.randint(0, 5)},
        )
