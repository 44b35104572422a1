"""
Quick local smoke test: load the parameter blobs through guardnet.ml_model and
score a few sample URLs end to end. Prints the resolved model paths and, per
URL, the primary/forest/fused/calibrated scores and the verdict.

Run: python3 tools/run_local_smoke.py
"""
import asyncio
import json

from guardnet import config
from guardnet.app.scanner import ScoringPipeline
from guardnet.app.trust import TrustMatcher, should_skip_url

SAMPLES = [
    "http://example.com",
    "https://wikipedia.org",
    "http://phishingsite.biz/login",
    "http://192.168.1.1/secure/login.php",
    "https://paypa1-secure.firebaseapp.com/verify",
    "https://www.kaskus.co.id/thread/123",
]


async def run():
    print("PRIMARY_MODEL_PATH:", config.PRIMARY_MODEL_PATH)
    print("FOREST_MODEL_PATH: ", config.FOREST_MODEL_PATH)
    print("SCALER_PARAMS_PATH:", config.SCALER_PARAMS_PATH)

    pipeline = ScoringPipeline()
    matcher = TrustMatcher()
    try:
        models = await pipeline.store.load()
    except Exception as e:
        print("Failed to load models:", e)
        return
    print("forest trees:", len(models.forest.trees), "scaler:", models.scaler is not None)

    for u in SAMPLES:
        if should_skip_url(u, matcher):
            print(json.dumps({"url": u, "skipped": True}))
            continue
        try:
            r = await pipeline.analyze(u)
        except Exception as e:
            print(json.dumps({"url": u, "error": str(e)}))
            continue
        print(json.dumps({
            "url": u,
            "lr_score": round(r["lr_score"], 4),
            "rf_score": None if r["rf_score"] is None else round(r["rf_score"], 4),
            "fusion": r["fusion_strategy"],
            "regime": r["calibration"]["name"],
            "score": round(r["score"], 4),
            "verdict": r["verdict"],
        }))


if __name__ == '__main__':
    asyncio.run(run())
