"""
Report the median ratio (B/A) and Win@1% of solver statistics between two
branching heuristics, read from the gzip JSONL written by solve_batch.
"""
import argparse
import glob
import gzip
import json
import os
import numpy as np

METRICS = ["decisions", "conflicts", "propagations"]

DELTA = 0.01
EPS = 1e-9


def read_records(path):
    """
    Load the records of one .jsonl.gz file.
    """
    with gzip.open(path, "rt", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


def read_metric(record, heuristic, metric):
    """
    Read a numeric metric of one heuristic from a record.

    Returns:
    	Float value or None if missing or not finite.
    """
    block = record.get("stats", {}).get(heuristic)
    if not isinstance(block, dict) or block.get(metric) is None:
        return None
    v = float(block[metric])
    return v if np.isfinite(v) else None


def ratio_eps(numer, denom, eps=EPS):
    """Compute numer/denom; if denom==0 use eps to avoid division by zero."""
    return numer / (denom if denom != 0.0 else eps)


def analyze_records(records, baseline, method):
    """
    Compute the median of B/A and Win@1% per metric.

    Args:
    	records: Records holding stats for both heuristics.
    	baseline: Heuristic name for A.
    	method: Heuristic name for B.

    Returns:
    	Dict metric -> summary with ratio_med, n_ratio, win_ratio, wins, n_win_den.
    """
    out = {}
    for m in METRICS:
        ratios = []
        wins = 0
        n_win_den = 0
        for rec in records:
            a = read_metric(rec, baseline, m)
            b = read_metric(rec, method, m)
            if a is None or b is None:
                continue
            ratios.append(ratio_eps(b, a))
            if a != 0.0:
                n_win_den += 1
                if b <= (1.0 - DELTA) * a:
                    wins += 1

        out[m] = {
            "ratio_med": float(np.median(np.array(ratios, dtype=float))) if ratios else None,
            "n_ratio": len(ratios),
            "win_ratio": (wins / n_win_den) if n_win_den > 0 else None,
            "wins": wins,
            "n_win_den": n_win_den,
        }
    return out


def print_summary(title, summaries):
    print(title)
    for m in METRICS:
        s = summaries[m]
        if s["ratio_med"] is None:
            med_str = "NA (n=0)"
        else:
            med_str = f"{s['ratio_med']:.6f} (n={s['n_ratio']})"
        if s["win_ratio"] is None:
            win_str = "NA (n=0)"
        else:
            win_str = f"{s['win_ratio']:.3f} (n={s['n_win_den']})"
        print(f"  {m}: median B/A={med_str}  Win@1%={win_str}")
    print("")


def main(argv=None):
    ap = argparse.ArgumentParser(description="Compare two branching heuristics")
    ap.add_argument("--folder", default="./dataset/solved")
    ap.add_argument("--baseline", default="random", help="heuristic A")
    ap.add_argument("--method", default="vsids", help="heuristic B")
    args = ap.parse_args(argv)

    files = sorted(glob.glob(os.path.join(args.folder, "**", "*.jsonl.gz"), recursive=True))
    if not files:
        print(f"No .jsonl.gz files in {args.folder}")
        return

    print(f"A = {args.baseline}, B = {args.method}; median B/A < 1 means B does less work.")
    print("")
    all_records = []
    for path in files:
        records = read_records(path)
        all_records.extend(records)
        print_summary(f"FILE: {os.path.basename(path)}", analyze_records(records, args.baseline, args.method))

    print_summary("FINAL (across all files)", analyze_records(all_records, args.baseline, args.method))


if __name__ == "__main__":
    main()
