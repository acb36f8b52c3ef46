"""
Entrypoint: load config, init logging, run a scripted browsing session
over the URLs given on the command line (or session.start_urls).
"""

import os
import sys

import structlog
from dotenv import load_dotenv

from webagent import Agent, AgentError, HtmlPage, LoggingInterceptor
from webagent.config import Config
from webagent.log import configure_logging
from webagent.transport import create_client


def main(argv=None):
    """Visit each URL in turn, idling between requests."""
    load_dotenv()

    config = Config(os.getenv('WEBAGENT_CONFIG'))
    log_config = config.logging
    configure_logging(log_config.get('level', 'INFO'), log_config.get('format', 'json'))
    logger = structlog.get_logger(__name__)

    urls = list(argv if argv is not None else sys.argv[1:]) or config.session.get('start_urls', [])
    if not urls:
        logger.error("no_urls_to_visit")
        return 1

    idle_ms = int(config.session.get('idle_ms', 0))
    agent = Agent(create_client(config.client), chunk_size=config.agent.get('chunk_size'))
    agent.add_interceptor(LoggingInterceptor())

    try:
        for i, url in enumerate(urls):
            if i and idle_ms:
                agent.idle(idle_ms)
            page = agent.get(url)
            if isinstance(page, HtmlPage):
                logger.info("page_visited",
                            url=page.uri,
                            status=page.status_code,
                            title=page.title,
                            links=len(page.links()),
                            forms=len(page.forms()))
            else:
                logger.info("resource_visited",
                            url=page.uri,
                            status=page.status_code,
                            content_type=page.content_type,
                            size=len(page.content))
    except AgentError as e:
        logger.error("session_failed", error=str(e), exc_info=True)
        return 1
    finally:
        agent.close()

    logger.info("session_finished", pages=len(agent.history), cookies=len(agent.cookies))
    return 0


if __name__ == "__main__":
    sys.exit(main())
