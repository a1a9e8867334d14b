import logging
import logging.handlers
import os
LOG_FORMAT = '%(asctime)s - %(filename)s - %(levelname)s - %(message)s'

def _printer():
    h = logging.StreamHandler()
    h.setFormatter(logging.Formatter(LOG_FORMAT))
    return h

def configure_logger(name, level=logging.INFO, log_dir='logs'):
    os.makedirs(log_dir, exist_ok=True)
    
    root = logging.getLogger()
    
    fileHandler = logging.handlers.RotatingFileHandler(os.path.join(log_dir, f'{name}.log'), 'a', 1024*1024, 50)
    fileHandler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(fileHandler)
    root.addHandler(_printer())
    root.setLevel(level)
    return root
