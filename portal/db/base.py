from sqlalchemy.orm import declarative_base

Base = declarative_base()
import portal.models.student
import portal.models.course
import portal.models.semester
import portal.models.result
import portal.models.lecture
import portal.models.enrollment
import portal.models.registered_student
import portal.models.token
