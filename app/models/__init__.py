from app.models.raw_item import RawItem
from app.models.neighborhood import Neighborhood
from app.models.content_item import ContentItem
from app.models.validation_record import ValidationRecord
from app.models.pipeline_run import PipelineRun
from app.models.publication import PublicationRecord
from .content_edit import ContentEditHistory
