import json
import logging
import datetime
import traceback


class StructuredLogger:

    def __init__(self, logger_name='StructuredLogger'):
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(logging.DEBUG) # Configuration to capture all levels of logs

        # avoid stacking handlers when the logger is built twice (reloads, tests)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter('%(message)s')
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)


    def _log(self, level, message, exc_info=None, **kwargs):
        log_entry = {
            'timestamp': datetime.datetime.now(datetime.timezone.utc).isoformat(),
            'level': level.upper(),
            'message': message,
            **kwargs
        }
        if exc_info is not None:
            log_entry['exc_info'] = ''.join(
                traceback.format_exception(type(exc_info), exc_info, exc_info.__traceback__)
            )
        json_log = json.dumps(log_entry, default=str)
        getattr(self.logger, level)(json_log) # Invoke the method corresponding to the level


    def info(self, message, **kwargs):
        self._log('info', message, **kwargs)

    def warning(self, message, **kwargs):
        self._log('warning', message, **kwargs)

    def error(self, message, **kwargs):
        self._log('error', message, **kwargs)

    def debug(self, message, **kwargs):
        self._log('debug', message, **kwargs)

app_logger = StructuredLogger('UserDirectoryLogger')
