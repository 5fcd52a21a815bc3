"""Run the development server: ``python -m mango``."""
import logging
import os
import sys

from mango import create_app
from mango.errors import ConfigurationMissing


def main():
    try:
        app = create_app(os.environ.get('FLASK_ENV', 'default'))
    except ConfigurationMissing as e:
        logging.getLogger('mango').error('%s', e)
        sys.exit(1)
    app.run(host=os.environ.get('HOST', '127.0.0.1'), port=app.config['PORT'])


if __name__ == '__main__':
    main()
