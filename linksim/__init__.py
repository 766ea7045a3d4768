from linksim.common import EventCategory
from linksim.config import LinkConfig
from linksim.core import EventQueue, LinkSimulator, PacketEvent, ServiceBuffer
from linksim.stat import LinkReport, LinkStat, format_report
from linksim.trace import TraceRecord, load_trace_files
