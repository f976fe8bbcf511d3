#  cloudflareddns - Keep Cloudflare DNS records in sync with your public IP
#  Copyright (C) 2023 The cloudflareddns contributors
#
#  This program is free software: you can redistribute it and/or modify
#  it under the terms of the GNU General Public License as published by
#  the Free Software Foundation, either version 3 of the License, or
#  (at your option) any later version.
#
#  This program is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#
#  You should have received a copy of the GNU General Public License
#  along with this program.  If not, see <https://www.gnu.org/licenses/>.

import logging
import logging.handlers

import pytest

import cloudflareddns.main
from cloudflareddns import SetupError


CONFIG = """[cloudflareddns]
log = stderr

[zone.example]
zone_id = zone1
api_key = secret

[record.home]
name = home.example.com
"""


@pytest.fixture
def restore_logger():
    """Fixture removing any handlers main() attached to the top-level
    logger"""
    log = logging.getLogger('cloudflareddns')
    handlers = list(log.handlers)
    level = log.level
    yield log
    for handler in list(log.handlers):
        if handler not in handlers:
            log.removeHandler(handler)
            handler.close()
    log.setLevel(level)


def test_parse_args_defaults():
    """Test the default command line arguments"""
    args = cloudflareddns.main.parse_args([])
    assert args.configfile == '/etc/cloudflareddns.conf'
    assert not args.single_shot
    assert not args.debug_logs
    assert not args.stderr


def test_parse_args_all():
    """Test every command line argument"""
    args = cloudflareddns.main.parse_args(['-1', '-c', 'my.conf', '-d',
                                           '-s'])
    assert args.configfile == 'my.conf'
    assert args.single_shot
    assert args.debug_logs
    assert args.stderr


def test_setup_logging_stderr(restore_logger):
    """Test logging to stderr"""
    log = cloudflareddns.main.setup_logging('stderr', False)
    assert log is restore_logger
    assert log.level == logging.INFO
    assert type(log.handlers[-1]) is logging.StreamHandler


def test_setup_logging_file(restore_logger, tmp_path):
    """Test logging to a file at debug level"""
    logfile = tmp_path / 'cloudflareddns.log'
    log = cloudflareddns.main.setup_logging(str(logfile), True)
    assert log.level == logging.DEBUG
    assert isinstance(log.handlers[-1], logging.FileHandler)

    logging.getLogger('cloudflareddns.test').info("hello")
    log.handlers[-1].flush()
    assert 'cloudflareddns.test: hello' in logfile.read_text()


def test_setup_logging_syslog(restore_logger, mocker):
    """Test logging to syslog"""
    handler = mocker.patch('logging.handlers.SysLogHandler')
    cloudflareddns.main.setup_logging('syslog', False)
    handler.assert_called_once_with()
    assert restore_logger.handlers[-1] is handler.return_value


def test_missing_config(tmp_path, capsys):
    """Test a config file that can't be read exits with status 2"""
    with pytest.raises(SystemExit) as excinfo:
        cloudflareddns.main.main(['-c', str(tmp_path / 'missing.conf')])
    assert excinfo.value.code == 2
    assert 'Config error' in capsys.readouterr().err


def test_invalid_config(configfile_factory, capsys):
    """Test an invalid config file exits with status 2"""
    configfile = configfile_factory("[zone.example]\nzone_id = zone1\n")
    with pytest.raises(SystemExit) as excinfo:
        cloudflareddns.main.main(['-c', str(configfile.filename)])
    assert excinfo.value.code == 2
    assert 'Config error' in capsys.readouterr().err


def test_manager_config_error(configfile_factory, mocker, restore_logger,
                              capsys):
    """Test a config error found by the manager exits with status 2"""
    configfile = configfile_factory(
        CONFIG.replace('log = stderr', 'log = stderr\nprobers = nope')
    )
    mocker.patch('cloudflareddns.manager.entry_points', return_value={})
    with pytest.raises(SystemExit) as excinfo:
        cloudflareddns.main.main(['-c', str(configfile.filename)])
    assert excinfo.value.code == 2


def test_single_shot(configfile_factory, mocker, restore_logger):
    """Test -1 checks once and returns"""
    configfile = configfile_factory(CONFIG)
    manager_class = mocker.patch('cloudflareddns.manager.DDNSManager')

    cloudflareddns.main.main(['-1', '-c', str(configfile.filename)])

    manager = manager_class.return_value
    manager.check_once.assert_called_once_with()
    manager.start.assert_not_called()


def test_run_until_stopped(configfile_factory, mocker, restore_logger):
    """Test the daemon starts the manager, notifies systemd, and waits for
    it"""
    configfile = configfile_factory(CONFIG)
    manager_class = mocker.patch('cloudflareddns.manager.DDNSManager')
    manager_class.return_value.workers = [object()]
    ready = mocker.patch('cloudflareddns.util.sdnotify.ready')
    status = mocker.patch('cloudflareddns.util.sdnotify.status')
    signals = mocker.patch('signal.signal')

    cloudflareddns.main.main(['-s', '-c', str(configfile.filename)])

    manager = manager_class.return_value
    manager.start.assert_called_once_with()
    manager.join.assert_called_once_with()
    ready.assert_called_once_with()
    status.assert_called_once_with("Keeping 1 records updated")
    assert len(signals.call_args_list) == 3


def test_prober_setup_error(configfile_factory, mocker, restore_logger):
    """Test a prober that fails to set up exits with status 1"""
    class BrokenProber:
        def __init__(self, name, config):
            raise SetupError("Could not open device")

    entry_point = mocker.Mock()
    entry_point.load.return_value = BrokenProber
    mocker.patch('cloudflareddns.manager.entry_points',
                 return_value={'broken': entry_point})
    mocker.patch.dict('cloudflareddns.probers.probers')
    configfile = configfile_factory(
        CONFIG.replace('log = stderr', 'log = stderr\nprobers = broken')
    )

    with pytest.raises(SystemExit) as excinfo:
        cloudflareddns.main.main(['-c', str(configfile.filename)])
    assert excinfo.value.code == 1
