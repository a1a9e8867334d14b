'''
Runs every job in the configuration one after the other.
Every name must correspond to a file in the jobs folder of the format 'job_*.py',
whose 'execute_job' is called with 'args' as keyword arguments, 'iterations' times.
'''
import json
import sys
from importlib import import_module
from time import time
from traceback import format_exc
from FINV.jobs.config import configuration
from FINV.lib.logger import configure_logger
import logging


MOD_PATH = 'FINV.jobs.job_%s'

def validate_config(config):
    if "jobs_to_run" not in config or not isinstance(config['jobs_to_run'], list):
        return False, "Invalid configuration: Missing or incorrect 'jobs_to_run'"

    for job in config['jobs_to_run']:
        if not isinstance(job, (list, tuple)) or len(job) != 2:
            return False, "Each job must be a list containing two elements"

        job_name, job_details = job
        if not isinstance(job_name, str):
            return False, "Job name must be a string"

        if not isinstance(job_details, dict):
            return False, "Job details must be a dictionary"

        if "args" not in job_details or not isinstance(job_details['args'], dict):
            return False, "Missing key 'args' in job details"

        iterations = job_details.get('iterations', 1)
        if not isinstance(iterations, int) or iterations < 1:
            return False, "'iterations' must be a positive integer"

    return True, "Configuration is valid."


def load_config(filename):
    logger = logging.getLogger('FINV')
    try:
        with open(filename, 'r') as file:
            job_config = json.load(file)
    except FileNotFoundError:
        logger.error("File not found: %s", filename)
        return configuration
    except json.JSONDecodeError:
        logger.error("Error decoding JSON from the file: %s", filename)
        return configuration
    logger.info("Loaded job configuration: %s", json.dumps(job_config, indent=4))
    valid, message = validate_config(job_config) # if it isn't valid then config.py will be used
    logger.info("validate_config job configuration: %s", message)
    if not valid:
        return configuration
    job_config['jobs_to_run'] = [tuple(job) for job in job_config['jobs_to_run']]
    return job_config


def run_job(module_path, module_config):
    try:
        module = import_module(module_path)
        args = module_config.get('args', {})
        timings = []
        for _ in range(module_config.get('iterations', 1)):
            start_time = time()
            module.execute_job(**args)
            timings.append(time() - start_time)
        return module_path, timings
    except Exception:
        logging.getLogger('FINV').error(f'Error in job {module_path}: {format_exc()}')
        return module_path, []


def main(argv=None) -> None:
    argv = sys.argv if argv is None else argv
    configure_logger('finv')
    config_data = load_config(argv[1]) if len(argv) >= 2 else configuration

    results = [run_job(MOD_PATH % name, config) for name, config in config_data['jobs_to_run']]

    for module_path, timings in results:
        print('-------------------------------------')
        if timings:
            print(f'module {module_path} running times:')
            print(f'min time: {min(timings)}')
            print(f'max time: {max(timings)}')
        else:
            print(f"module {module_path} didn't run! check logs")
        print('-------------------------------------')

if __name__ == '__main__':
    main()
