import sys
import json
import time
import argparse
import subprocess
from pathlib import Path
from datetime import datetime

from smartcity.schedule import NORMAL_SCENARIO, known_scenarios
from smartcity.utils.dataset_combiner import combine_datasets


def next_run_id(output_base: Path, date_str: str) -> int:
    existing_dirs = []
    if output_base.exists():
        for dir_path in output_base.iterdir():
            if dir_path.is_dir() and dir_path.name.startswith(f"{date_str}-"):
                try:
                    existing_dirs.append(int(dir_path.name.split('-')[1]))
                except (ValueError, IndexError):
                    continue
    return max(existing_dirs) + 1 if existing_dirs else 1


def scenarios_from_config(config_file: Path):
    with open(config_file, 'r') as f:
        config = json.load(f)
    return config.get("bulk_scenarios") or known_scenarios()


def build_command(main_script: Path, config_file: Path, scenario: str, output_dir: Path, args):
    cmd = [sys.executable, str(main_script), str(config_file),
           '--scenario', scenario, '--output-dir', str(output_dir)]
    if scenario != NORMAL_SCENARIO:
        cmd.append('--attacks')
    if args.time:
        cmd.extend(['--time', str(args.time)])
    if args.flows_dir:
        cmd.extend(['--flows-xml', str(Path(args.flows_dir).resolve() / f"{scenario}-enhanced-flows.xml")])
    if args.workers:
        cmd.extend(['--workers', str(args.workers)])
    if args.no_oracle:
        cmd.append('--no-oracle')
    return cmd


def main():
    parser = argparse.ArgumentParser(description="Run main.py once per scenario into dated output directories")
    parser.add_argument('--config', type=str, default='config.json', help='Configuration file to use (default: config.json)')
    parser.add_argument('--scenarios', nargs='*', help='Scenarios to run (default: bulk_scenarios from the config)')
    parser.add_argument('--time', type=float, help='Simulation duration in seconds for every run')
    parser.add_argument('--flows-dir', type=str, help='Directory with <scenario>-enhanced-flows.xml reports to replay')
    parser.add_argument('--workers', type=int, help='Parallel oracle queries per run')
    parser.add_argument('--no-oracle', action='store_true', help='Skip the ML firewall queries')
    parser.add_argument('--no-combine', action='store_true', help='Skip dataset combination')
    args = parser.parse_args()

    base_dir = Path(__file__).parent.resolve()
    main_script = base_dir / "main.py"

    if not main_script.exists():
        print(f"ERROR: main.py not found at {main_script}")
        sys.exit(1)

    config_file = base_dir / args.config
    if not config_file.exists():
        print(f"ERROR: Config file not found at {config_file}")
        sys.exit(1)

    scenarios = args.scenarios or scenarios_from_config(config_file)

    print(f"[RUN] Starting {len(scenarios)} scenario runs of main.py")
    print(f"Using config file: {config_file}")
    print(f"Scenarios: {', '.join(scenarios)}")
    print("==" * 30)

    successful_runs = 0
    failed_runs = 0
    run_results = []

    date_str = datetime.now().strftime('%d%m%y')
    output_base = base_dir / "main_output"
    start_id = next_run_id(output_base, date_str)

    for offset, scenario in enumerate(scenarios):
        run_id = f"{date_str}-{start_id + offset}"
        output_dir = output_base / run_id
        print(f"\n[RUN] Scenario {offset + 1}/{len(scenarios)}: {scenario} (ID: {run_id})")
        print(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

        if output_dir.exists():
            print(f"WARNING: Directory {output_dir} already exists! Skipping this run.")
            continue
        output_dir.mkdir(parents=True, exist_ok=True)

        cmd = build_command(main_script, config_file, scenario, output_dir, args)
        print(f"Command: {' '.join(cmd)}")

        start_time = time.time()
        try:
            result = subprocess.run(cmd, cwd=base_dir)
            return_code = result.returncode
            error = None
        except OSError as e:
            return_code = -1
            error = str(e)
        execution_time = time.time() - start_time

        if return_code == 0:
            print(f"[OK] {scenario} (ID: {run_id}) completed in {execution_time:.2f} seconds")
            successful_runs += 1
            status = "SUCCESS"
        else:
            print(f"[FAIL] {scenario} (ID: {run_id}) failed with return code {return_code}")
            failed_runs += 1
            status = "FAILED" if error is None else "EXCEPTION"

        entry = {
            'scenario': scenario,
            'run_id': run_id,
            'status': status,
            'execution_time': execution_time,
            'output_dir': output_dir,
            'return_code': return_code,
        }
        if error:
            entry['error'] = error
        run_results.append(entry)
        print("-" * 50)

    print("\n" + "=" * 70)
    print("[RUN] SmartCity Flow Dataset Generation")
    print(f"[STATS] Total runs: {len(run_results)}")
    print(f"[OK] Successful runs: {successful_runs}")
    print(f"[FAIL] Failed runs: {failed_runs}")
    if run_results:
        print(f"[CHART] Success rate: {(successful_runs / len(run_results)) * 100:.1f}%")

    print("\nDetailed Results:")
    for result in run_results:
        status_tag = "[OK]" if result['status'] == "SUCCESS" else "[FAIL]"
        print(f"  {status_tag} {result['scenario']} (ID: {result['run_id']}): {result['status']} "
              f"({result['execution_time']:.1f}s) -> {result['output_dir'].name}")
        if 'error' in result:
            print(f"    Error: {result['error']}")

    if not args.no_combine and successful_runs > 0:
        if not combine_datasets(output_base):
            print("\n[WARN] Dataset combination failed!")

    if failed_runs > 0:
        print(f"\n[WARN]  WARNING: {failed_runs} runs failed!")
        sys.exit(1)
    print("\n[DONE] All scenario runs completed successfully!")
    sys.exit(0)


if __name__ == "__main__":
    main()
