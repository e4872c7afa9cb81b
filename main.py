import os
import argparse
import datetime
from tqdm import tqdm

from experiments.pca_session import run_pca_analysis
from experiments.fa_session import run_factor_analysis
from experiments.cluster_session import run_cluster_analysis

# ---------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------
RUN_CONFIG = {
    "data_path": "rental.txt",
    "id_column": None,  # None -> first column (city)
    "output_root": "results",
    "sessions": {
        "pca": True,
        "fa": True,
        "cluster": True,
    },
    "n_factors": "auto",  # "auto" -> parallel analysis
    "n_clusters": 3,  # "auto" -> best silhouette
    "random_state": 123,
}

SESSION_ORDER = ["pca", "fa", "cluster"]


# ---------------------------------------------------------
# HELPER & MAIN
# ---------------------------------------------------------
def count_or_auto(value):
    """argparse type accepting a positive integer or the word 'auto'."""
    if value == "auto":
        return value
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer or 'auto', got '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {number}")
    return number


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="PCA, Factor Analysis and Clustering of the rental dataset.")
    ap.add_argument("--data", default=RUN_CONFIG["data_path"],
                    help="Whitespace-delimited data file with a header row")
    ap.add_argument("--id-col", default=RUN_CONFIG["id_column"],
                    help="Identifier column (default: first column)")
    ap.add_argument("--output", default=RUN_CONFIG["output_root"],
                    help="Root directory for the timestamped run folder")
    ap.add_argument("--sessions", nargs="+", choices=SESSION_ORDER,
                    default=[s for s in SESSION_ORDER if RUN_CONFIG["sessions"][s]],
                    help="Analyses to run")
    ap.add_argument("--factors", type=count_or_auto, default=RUN_CONFIG["n_factors"],
                    help="Number of factors or 'auto'")
    ap.add_argument("--clusters", type=count_or_auto, default=RUN_CONFIG["n_clusters"],
                    help="Number of clusters or 'auto'")
    ap.add_argument("--seed", type=int, default=RUN_CONFIG["random_state"],
                    help="Random seed for K-Means and parallel analysis")
    return ap.parse_args(argv)


def run_session(name: str, args: argparse.Namespace, output_dir: str) -> dict:
    if name == "pca":
        return run_pca_analysis(args.data, output_dir, id_column=args.id_col)
    if name == "fa":
        return run_factor_analysis(args.data, output_dir, id_column=args.id_col,
                                   n_factors=args.factors, random_state=args.seed)
    if name == "cluster":
        return run_cluster_analysis(args.data, output_dir, id_column=args.id_col,
                                    n_clusters=args.clusters, random_state=args.seed)
    raise ValueError(f"Unknown session '{name}'.")


def main(argv=None) -> dict:
    args = parse_args(argv)

    session_id = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    base_dir = os.path.join(args.output, f"run_{session_id}")
    os.makedirs(base_dir, exist_ok=True)

    print(f"Rental Analysis Started: {session_id}")
    sessions = [s for s in SESSION_ORDER if s in args.sessions]

    results = {}
    pbar = tqdm(sessions, unit="session")
    for name in pbar:
        pbar.set_description(f"[{name}]")
        try:
            results[name] = run_session(name, args, os.path.join(base_dir, name))
        except Exception as e:
            pbar.write(f"Failed: {name} - {e}")
            raise

    print(f"\nRun Complete. Outputs saved in {base_dir}")
    return results


if __name__ == "__main__":
    main()
