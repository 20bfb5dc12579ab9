from locust import HttpUser, task, between
import random

# Known synthetic account ids; set USE_MOCK_DATA=1 on the server under test
ACCOUNTS = [f"mock-account-{i}" for i in range(1, 5)]
TIMEFRAMES = ["7d", "30d", "90d", "1y"]
ADDRESSES = [
    "0x7f367cc41522ce07553e823bf3be79a889debe1b",
    "0x000000000000000000000000000000000000dEaD",
    "0x00000000219ab540356cbb839cbe05303d7705fa",
]


class StakingDashboardUser(HttpUser):
    wait_time = between(1, 2)

    @task(3)
    def stakes(self):
        # ambil 1-3 akun acak tiap request
        sample = random.sample(ACCOUNTS, random.randint(1, 3))
        self.client.get(
            "/api/stakes",
            params={"accounts": ",".join(sample), "analytics": "advanced"},
            name="/api/stakes",
        )

    @task(3)
    def rewards(self):
        sample = random.sample(ACCOUNTS, random.randint(1, 3))
        self.client.get(
            "/api/rewards",
            params={"accounts": ",".join(sample), "timeframe": random.choice(TIMEFRAMES)},
            name="/api/rewards",
        )

    @task(2)
    def enhanced_accounts(self):
        self.client.get("/api/accounts/enhanced")

    @task(1)
    def validators(self):
        self.client.get("/api/validators")

    @task(1)
    def bulk_check(self):
        self.client.post("/api/compliance/bulk-check", json={"addresses": ADDRESSES})

    @task(1)
    def explorer(self):
        self.client.get("/api/explorer/transactions", params={"limit": 10})
