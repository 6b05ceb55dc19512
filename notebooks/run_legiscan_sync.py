#%%
from dotenv import load_dotenv
from tqdm import tqdm

from legiscan_sync import (JsonFileCacheStore, LegiScanClient, Legislator,
                           SyncConfig, VoteSynchronizer)

load_dotenv()

config = SyncConfig.from_env()

#%%

client = LegiScanClient.from_config(config)
cache = JsonFileCacheStore("data/legiscan_cache")
synchronizer = VoteSynchronizer(client, cache, config=config)

#%%

LEGISLATORS = [
    Legislator(legislator_id="tx-lower-012", state="TX", full_name="Jane Doe", chamber="lower"),
    Legislator(legislator_id="tx-upper-004", state="TX", full_name="John Roe", last_name="Roe", chamber="upper"),
]

results = {}
for leg in tqdm(LEGISLATORS):
    votes = synchronizer.sync(leg)
    results[leg.legislator_id] = votes
    if votes is None:
        print(f"{leg.full_name}: no LegiScan data (use fallback source)")
    else:
        print(f"{leg.full_name}: {len(votes)} votes")

print(f"LegiScan requests used: {client.request_count}")

# %%

for v in (results.get("tx-lower-012") or [])[:10]:
    print(v.date, v.bill_number, v.position, v.result, v.question)
# %%
