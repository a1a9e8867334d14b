from FINV.jobs import run
import sys

if __name__ == '__main__':
    if len(sys.argv) not in [2, 3] or sys.argv[1] != 'start':
        print('Usage: run_jobs.py start [config.json]')
        exit(1)

    run.main(sys.argv[1:])
