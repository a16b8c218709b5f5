import ipaddress
import itertools
import logging
import random
import socket
import threading
import time

from hostPing import icmp

log = logging.getLogger(__name__)

DEFAULT_COUNT = 4
DEFAULT_INTERVAL = 1000
MIN_COUNT = 2
MAX_COUNT = 0xFFFF
POLL_INTERVAL = 0.1
BUFFER_SIZE = 65535
BODY = b'0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ'

_identifiers = itertools.count(random.randrange(0x10000))


def next_identifier():
    """
    идентификатор нового сеанса: 16 бит, различный для сеансов одного процесса
    """
    return next(_identifiers) & 0xFFFF


def verdict(num_replies, count):
    """
    :return: True, если ответило строго больше половины запросов
    """
    return num_replies > count // 2


class Pinger:
    """
    Сеанс проверки доступности узла с помощью ICMP ECHO REQUEST/REPLY.
    Запросы посылаются по таймеру из вызывающего потока,
    ответы принимаются отдельным потоком-слушателем.
    """

    def __init__(self, address, count=DEFAULT_COUNT, interval=DEFAULT_INTERVAL, sock=None):
        """
        Инициализация сеанса
        :type address: int или str
        :type count: int
        :type interval: int или float
        :param address: IPv4 адрес адресата (32 битное число или строка вида a.b.c.d)
        :param count: кол-во запросов (не меньше 2)
        :param interval: время ожидания ответа на запрос в миллисекундах
        :param sock: открытый сокет; если None, создаётся сырой ICMP сокет
        """
        try:
            self.destination = str(ipaddress.IPv4Address(address))
        except ipaddress.AddressValueError as err:
            raise ValueError("invalid IPv4 address: {!r}".format(address)) from err
        if count > MAX_COUNT:
            raise ValueError("count must not exceed {}".format(MAX_COUNT))
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.count = max(count, MIN_COUNT)
        self.interval = interval
        self.identifier = next_identifier()
        self.sequence_number = 0
        self.num_replies = 0
        self.answered = 0
        self.time_sent = None
        self.error = None
        self.sock = sock
        self.lock = threading.RLock()
        self.closed = threading.Event()
        log.debug("Инициализация сеанса: адресат: %s; кол-во запросов: %d; таймаут: %s мс; id: %d",
                  self.destination, self.count, self.interval, self.identifier)

    def run(self):
        """
        Проведение сеанса до конца
        :return: кол-во полученных ответов
        :raise OSError: ошибка сокета; полученные до неё ответы остаются в num_replies
        """
        own_socket = self.sock is None
        if own_socket:
            self.sock = socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_ICMP)
        try:
            self.sock.settimeout(POLL_INTERVAL)
            self.start_send()
            listener = threading.Thread(target=self.listener, daemon=True,
                                        name="hostPing-listener-{}".format(self.identifier))
            listener.start()
            try:
                self.ticker()
            finally:
                self.close()
                listener.join()
            if self.error is not None:
                raise self.error
            return self.num_replies
        finally:
            if own_socket:
                self.sock.close()

    def close(self):
        """
        завершение сеанса: таймер и слушатель прекращают работу
        """
        with self.lock:
            self.closed.set()

    def start_send(self):
        """
        посылка очередного запроса
        """
        with self.lock:
            time_sent = time.monotonic()
            if self.closed.is_set() or self.sequence_number >= self.count:
                return
            self.sequence_number += 1
            sequence_number = self.sequence_number
            self.time_sent = time_sent
            # под блокировкой: после close() запросы не посылаются
            icmp.send_echo_request(self.sock, self.destination, self.identifier,
                                   sequence_number, BODY)
        log.debug("Послан запрос: ip: %s; id: %d; seq_num: %d",
                  self.destination, self.identifier, sequence_number)

    def wait_timeout(self):
        """
        ожидание истечения таймаута последнего запроса
        :return: True, если сеанс закрыт во время ожидания
        """
        deadline = self.time_sent + self.interval / 1000
        return self.closed.wait(max(0., deadline - time.monotonic()))

    def ticker(self):
        """
        таймер: по истечении таймаута посылает следующий запрос или завершает сеанс
        """
        while not self.wait_timeout():
            with self.lock:
                finished = self.sequence_number >= self.count
            if finished:
                log.debug("Истёк таймаут последнего запроса: id: %d", self.identifier)
                self.close()
                return
            # повторное ожидание отсчитывается от того же момента посылки
            if self.wait_timeout():
                return
            self.start_send()

    def listener(self):
        """
        слушатель ответов
        """
        try:
            while not self.closed.is_set():
                try:
                    packet = self.sock.recv(BUFFER_SIZE)
                except socket.timeout:
                    continue
                if self.handle_reply(packet):
                    break
        except OSError as err:
            if not self.closed.is_set():
                self.error = err
                self.close()
        log.debug("Слушатель завершил работу: id: %d", self.identifier)

    def handle_reply(self, packet):
        """
        Обработка полученной датаграммы
        :type packet: bytes
        :param packet: датаграмма вместе с заголовком IPv4
        :return: True, если больше ждать нечего
        """
        try:
            ip_header, icmp_header, _ = icmp.parse_reply(packet)
        except icmp.HeaderError as err:
            log.debug("Отброшена повреждённая датаграмма: %s", err)
            return False
        with self.lock:
            if self.closed.is_set():
                return True
            if (icmp_header.type == icmp.ECHO_REPLY
                    and icmp_header.identifier == self.identifier
                    and icmp_header.sequence_number == self.sequence_number
                    and self.answered != self.sequence_number):
                self.answered = self.sequence_number
                self.num_replies += 1
                log.debug("Получен ответ: ip: %s; id: %d; seq_num: %d",
                          ip_header.source, icmp_header.identifier, icmp_header.sequence_number)
            else:
                log.debug("Пакет неопознан: ip: %s; type: %d; id: %d; seq_num: %d",
                          ip_header.source, icmp_header.type,
                          icmp_header.identifier, icmp_header.sequence_number)
            return self.sequence_number >= self.count and self.answered == self.sequence_number


def probe(address, count=DEFAULT_COUNT, interval=DEFAULT_INTERVAL, sock=None):
    """
    Проверка доступности узла
    :type address: int или str
    :type count: int
    :type interval: int или float
    :param address: IPv4 адрес адресата
    :param count: кол-во запросов (не меньше 2)
    :param interval: время ожидания ответа на каждый запрос в миллисекундах
    :param sock: открытый сокет; если None, создаётся сырой ICMP сокет
    :return: True, если ответило больше половины запросов;
             ошибка сокета даёт результат по уже полученным ответам
    """
    pinger = Pinger(address, count, interval, sock)
    log.info("Проверка доступности %s: запросов: %d; таймаут: %s мс",
             pinger.destination, pinger.count, pinger.interval)
    try:
        pinger.run()
    except OSError:
        log.exception("Ошибка сокета при проверке %s", pinger.destination)
    result = verdict(pinger.num_replies, pinger.count)
    log.info("Проверка доступности %s завершена: ответов %d из %d; %s",
             pinger.destination, pinger.num_replies, pinger.count,
             "доступен" if result else "недоступен")
    return result
