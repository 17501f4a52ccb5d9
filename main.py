# main.py
import os
import shutil
import uuid
import logging
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, UploadFile, File, Form
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, FileResponse
from pydantic import BaseModel

from backend import DataManager, ExportBlockedError
from data_alchemist import settings
from data_alchemist.engine import summarize, validate_all
from data_alchemist.models import BusinessRule, Snapshot

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Data Alchemist")

# Enable CORS for frontend communication
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

os.makedirs(settings.UPLOAD_DIR, exist_ok=True)

NO_DATA_MESSAGE = "No data loaded. Please upload files first."

# Global DataManager instance to persist data across requests
global_data_manager = DataManager()


def get_data_manager() -> DataManager:
    return global_data_manager


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


def no_data_response() -> JSONResponse:
    return error_response(400, NO_DATA_MESSAGE)


def save_upload_file(upload_file: UploadFile) -> str:
    file_id = str(uuid.uuid4())
    filename = os.path.basename(upload_file.filename or "upload.csv")
    file_path = os.path.join(settings.UPLOAD_DIR, f"{file_id}_{filename}")
    with open(file_path, "wb") as buffer:
        shutil.copyfileobj(upload_file.file, buffer)
    return file_path


def validation_payload(dm: DataManager) -> Dict[str, Any]:
    diagnostics = dm.validate_all()
    return {
        "errors": [d.to_dict() for d in diagnostics],
        "validationSummary": summarize(diagnostics).to_dict(),
    }


# --------- Request bodies ---------

class RecordUpdateRequest(BaseModel):
    field: str
    value: Any = None


class ApplyCorrectionsRequest(BaseModel):
    ids: Optional[List[str]] = None


class GenerateRuleRequest(BaseModel):
    input: str


class SuggestionRequest(BaseModel):
    id: str


class PrioritiesRequest(BaseModel):
    weights: Optional[Dict[str, float]] = None
    preset: Optional[str] = None


# --------- Endpoints ---------

# Endpoint to accept files from frontend
@app.post("/upload")
async def upload_files(
    clients: UploadFile = File(...),
    workers: UploadFile = File(...),
    tasks: UploadFile = File(...),
    dm: DataManager = Depends(get_data_manager),
):
    try:
        clients_path = save_upload_file(clients)
        workers_path = save_upload_file(workers)
        tasks_path = save_upload_file(tasks)
        logger.info("Files saved: %s, %s, %s", clients_path, workers_path, tasks_path)

        dm.load_files(clients_path, workers_path, tasks_path)
        if not dm.has_data:
            return error_response(400, "Failed to load data from files")

        return {
            "status": "success",
            **validation_payload(dm),
            "data": dm.data(),
            "headerMappings": {
                name: [m.to_dict() for m in mappings]
                for name, mappings in dm.header_mappings.items()
            },
            "summary": dm.data_summary(),
        }
    except ValueError as e:
        return error_response(400, str(e))
    except Exception as e:
        logger.exception("Error in upload endpoint")
        return error_response(500, str(e))


# Stateless validation of a posted snapshot
@app.post("/validate")
async def validate_snapshot(snapshot: Snapshot):
    try:
        diagnostics = validate_all(snapshot.clients, snapshot.workers, snapshot.tasks)
        return {
            "status": "success",
            "errors": [d.to_dict() for d in diagnostics],
            "validationSummary": summarize(diagnostics).to_dict(),
        }
    except Exception as e:
        logger.exception("Error in validate endpoint")
        return error_response(500, str(e))


# Validate the loaded batch
@app.get("/validation")
async def validation(dm: DataManager = Depends(get_data_manager)):
    try:
        if not dm.has_data:
            return no_data_response()
        return {"status": "success", **validation_payload(dm)}
    except Exception as e:
        logger.exception("Error in validation endpoint")
        return error_response(500, str(e))


# Manual edit of one cell, followed by re-validation
@app.patch("/records/{collection}/{row_index}")
async def update_record(
    collection: str,
    row_index: int,
    request: RecordUpdateRequest,
    dm: DataManager = Depends(get_data_manager),
):
    try:
        if not dm.has_data:
            return no_data_response()
        row = dm.update_record(collection, row_index, request.field, request.value)
        return {"status": "success", "record": row, **validation_payload(dm)}
    except IndexError as e:
        return error_response(404, str(e))
    except ValueError as e:
        return error_response(400, str(e))
    except Exception as e:
        logger.exception("Error in update_record endpoint")
        return error_response(500, str(e))


# Keyword search
@app.post("/nl_search")
async def nl_search(query: str = Form(...), dm: DataManager = Depends(get_data_manager)):
    try:
        if not dm.has_data:
            return no_data_response()
        return {"status": "success", "results": dm.search(query)}
    except Exception as e:
        logger.exception("Error in search endpoint")
        return error_response(500, str(e))


# Row correction suggestions
@app.get("/suggest_corrections")
async def suggest_corrections(dm: DataManager = Depends(get_data_manager)):
    try:
        if not dm.has_data:
            return no_data_response()
        suggestions = dm.suggest_corrections()
        return {"status": "success", "suggestions": [s.to_dict() for s in suggestions]}
    except Exception as e:
        logger.exception("Error in suggest_corrections endpoint")
        return error_response(500, str(e))


# Apply correction suggestions (all of them, or the given ids)
@app.post("/apply_corrections")
async def apply_corrections(
    request: Optional[ApplyCorrectionsRequest] = None,
    dm: DataManager = Depends(get_data_manager),
):
    try:
        if not dm.has_data:
            return no_data_response()

        ids = request.ids if request is not None else None
        result = dm.apply_corrections(ids)
        diagnostics = result["diagnostics"]
        return {
            "status": "success",
            "message": (
                f"Applied {len(result['applied'])} fixes. Issues reduced from "
                f"{result['errors_before']} to {result['errors_after']}"
            ),
            "applied": result["applied"],
            "skipped": result["skipped"],
            "errors": [d.to_dict() for d in diagnostics],
            "validationSummary": summarize(diagnostics).to_dict(),
            "data": dm.data(),
            "summary": {
                **dm.data_summary(),
                "error_count": result["errors_after"],
                "errors_fixed": result["errors_before"] - result["errors_after"],
            },
        }
    except Exception as e:
        logger.exception("Error in apply_corrections endpoint")
        return error_response(500, str(e))


# Pattern-based rule recommendations
@app.post("/ai_rule_recommendations")
async def ai_rule_recommendations(dm: DataManager = Depends(get_data_manager)):
    try:
        if not dm.has_data:
            return no_data_response()
        recommendations = dm.get_recommended_rules()
        return {"status": "success", "recommendations": [s.to_dict() for s in recommendations]}
    except Exception as e:
        logger.exception("Error in ai_rule_recommendations endpoint")
        return error_response(500, str(e))


# Sentence -> rule candidate (not stored)
@app.post("/ai_generate_rule")
async def ai_generate_rule(request: GenerateRuleRequest, dm: DataManager = Depends(get_data_manager)):
    try:
        result = dm.generate_rule(request.input)
        if result.matched:
            return {"status": "success", "intent": result.intent, "rule": result.rule.to_dict()}
        return {"status": "error", "message": result.message}
    except Exception as e:
        logger.exception("Error in ai_generate_rule endpoint")
        return error_response(500, str(e))


# --------- Rule store ---------

@app.get("/rules")
async def list_rules(dm: DataManager = Depends(get_data_manager)):
    return {"status": "success", "rules": [rule.to_dict() for rule in dm.rules]}


@app.post("/rules")
async def add_rule(rule: BusinessRule, dm: DataManager = Depends(get_data_manager)):
    try:
        stored = dm.add_rule(rule)
        return {"status": "success", "rule": stored.to_dict()}
    except Exception as e:
        logger.exception("Error adding rule")
        return error_response(500, str(e))


@app.post("/rules/from_suggestion")
async def add_rule_from_suggestion(request: SuggestionRequest, dm: DataManager = Depends(get_data_manager)):
    try:
        rule = dm.accept_rule_suggestion(request.id)
        return {"status": "success", "rule": rule.to_dict()}
    except KeyError:
        return error_response(404, f"Rule suggestion not found: {request.id}")
    except Exception as e:
        logger.exception("Error accepting rule suggestion")
        return error_response(500, str(e))


@app.delete("/rules/{rule_id}")
async def delete_rule(rule_id: str, dm: DataManager = Depends(get_data_manager)):
    try:
        rule = dm.remove_rule(rule_id)
        return {"status": "success", "rule": rule.to_dict()}
    except KeyError:
        return error_response(404, f"Rule not found: {rule_id}")
    except Exception as e:
        logger.exception("Error removing rule")
        return error_response(500, str(e))


@app.post("/rules/{rule_id}/toggle")
async def toggle_rule(rule_id: str, enabled: Optional[bool] = None, dm: DataManager = Depends(get_data_manager)):
    try:
        rule = dm.set_rule_enabled(rule_id, enabled)
        return {"status": "success", "rule": rule.to_dict()}
    except KeyError:
        return error_response(404, f"Rule not found: {rule_id}")
    except Exception as e:
        logger.exception("Error toggling rule")
        return error_response(500, str(e))


# Prioritization weights
@app.post("/priorities")
async def set_priorities(request: PrioritiesRequest, dm: DataManager = Depends(get_data_manager)):
    try:
        if request.preset:
            weights = dm.apply_preset(request.preset)
        elif request.weights is not None:
            weights = dm.set_priorities(request.weights)
        else:
            return error_response(400, "Provide either weights or preset")
        return {"status": "success", "weights": weights.to_dict()}
    except ValueError as e:
        return error_response(400, str(e))
    except Exception as e:
        logger.exception("Error setting priorities")
        return error_response(500, str(e))


# Export processed data
@app.post("/export")
async def export_data(force: bool = False, dm: DataManager = Depends(get_data_manager)):
    try:
        if not dm.has_data:
            return no_data_response()

        output_dir = dm.export_all(settings.EXPORT_DIR, force=force)
        exported_files = []
        for name, kind in (("clients.csv", "csv"), ("workers.csv", "csv"),
                           ("tasks.csv", "csv"), ("rules.json", "json")):
            path = os.path.join(output_dir, name)
            if os.path.exists(path):
                exported_files.append({"name": name, "path": path, "type": kind})

        return {
            "status": "success",
            "message": f"Data exported successfully to {output_dir}",
            "export_directory": output_dir,
            "files": exported_files,
            "summary": {
                "total_files": len(exported_files),
                "clients_count": len(dm.clients),
                "workers_count": len(dm.workers),
                "tasks_count": len(dm.tasks),
                "rules_count": len(dm.enabled_rules()),
            },
        }
    except ExportBlockedError as e:
        return error_response(409, str(e))
    except Exception as e:
        logger.exception("Error in export endpoint")
        return error_response(500, str(e))


# Download individual exported files
@app.get("/download/{filename}")
async def download_file(filename: str):
    try:
        file_path = os.path.join(settings.EXPORT_DIR, filename)
        if os.path.basename(filename) != filename or not os.path.exists(file_path):
            return error_response(404, "File not found")

        return FileResponse(
            path=file_path,
            media_type="application/octet-stream",
            filename=filename,
        )
    except Exception as e:
        logger.exception("Error in download endpoint")
        return error_response(500, str(e))
