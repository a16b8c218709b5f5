#!/usr/bin/sudo python3
import argparse
import logging
import sys

from hostPing import pinger


def get_parser() -> argparse.ArgumentParser:
    """
    генерация парсера аргументов командной строки
    :return: сгенерированный парсер
    """
    parser = argparse.ArgumentParser(
        description="Проверка доступности узла с помощью ICMP ECHO REQUEST")
    parser.add_argument("--log_file", "-l", dest="log_file", type=argparse.FileType("a"),
                        default=sys.stderr, help="Путь до файла для логов")

    log_level = parser.add_mutually_exclusive_group()
    log_level.set_defaults(log_level=logging.INFO)
    log_level.add_argument("--error", "-e", dest="log_level",
                           action="store_const", const=logging.ERROR,
                           help="Ограничить логирование ошибками")
    log_level.add_argument("--info", "-i", dest="log_level",
                           action="store_const", const=logging.INFO,
                           help="Ограничить логирование информацией")
    log_level.add_argument("--debug", "-d", dest="log_level",
                           action="store_const", const=logging.DEBUG,
                           help="Ограничить логирование сообщениями для дебага")

    parser.add_argument("address", help="IPv4 адрес адресата")
    parser.add_argument("--count", "-c", type=int, default=pinger.DEFAULT_COUNT,
                        help="Кол-во запросов (не меньше {})".format(pinger.MIN_COUNT))
    parser.add_argument("--interval", "-t", type=int, default=pinger.DEFAULT_INTERVAL,
                        help="Время ожидания ответа на запрос в миллисекундах")
    return parser


if __name__ == "__main__":
    parser = get_parser()
    args = parser.parse_args()
    logging.basicConfig(format="%(levelname)-8s [%(asctime)-15s; %(name)s]: %(message)s",
                        level=args.log_level, stream=args.log_file)
    try:
        reachable = pinger.probe(args.address, args.count, args.interval)
    except ValueError as err:
        parser.error(str(err))
    print("reachable" if reachable else "unreachable")
    sys.exit(0 if reachable else 1)
