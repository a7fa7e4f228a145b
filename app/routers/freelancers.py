import logging
from datetime import date
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, UploadFile
from sqlalchemy.orm import Session
from typing import List, Optional
from app.core.database import get_db
from app.models.profile import Availability
from app.models.user import User
from app.schemas.profile import FreelancerProfileResponse, JobSeekerProfileResponse, CertificateRemoval
from app.schemas.user import UserResponse
from app.services.accounts import ensure_no_conflict
from app.services.email_service import email_service
from app.services.profiles import (
    check_certificate_count, clean_account_fields, parse_url_list,
    remove_certificate, update_freelancer_profile
)
from app.api.deps import require_freelancer
from app.utils.file_storage import MediaStore, get_media_store, real_uploads

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/freelancer", tags=["Freelancers"])


def _profile_response(user: User, msg: Optional[str] = None) -> FreelancerProfileResponse:
    profile = user.job_seeker_profile
    return FreelancerProfileResponse(
        msg=msg,
        user=UserResponse.model_validate(user),
        profile=JobSeekerProfileResponse.model_validate(profile) if profile else None,
    )


@router.get("/profile", response_model=FreelancerProfileResponse)
async def get_profile(current_user: User = Depends(require_freelancer)):
    return _profile_response(current_user)


# ─── UPDATE: multipart form, files optional ───────────────────────────────────

@router.put("/profile", response_model=FreelancerProfileResponse)
async def update_profile(
    request: Request,
    background_tasks: BackgroundTasks,

    # ── Account fields ────────────────────────────────────────────────────────
    first_name: Optional[str] = Form(None, alias="firstName"),
    last_name: Optional[str] = Form(None, alias="lastName"),
    user_name: Optional[str] = Form(None, alias="userName"),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    location: Optional[str] = Form(None),

    # ── Profile fields ────────────────────────────────────────────────────────
    title: Optional[str] = Form(None),
    experience: Optional[str] = Form(None),
    expected_salary: Optional[str] = Form(None, alias="expectedSalary"),
    salary_currency: Optional[str] = Form(None, alias="salaryCurrency"),
    bio: Optional[str] = Form(None),
    availability: Optional[Availability] = Form(None),
    available_from: Optional[date] = Form(None, alias="availableFrom"),

    # ── File references ───────────────────────────────────────────────────────
    cv_file_path: Optional[str] = Form(None, alias="cvFilePath"),          # already uploaded CV URL
    new_certificates: Optional[str] = Form(None, alias="newCertificates"),  # JSON array of URLs
    existing_certificates: Optional[str] = Form(None, alias="existingCertificates"),  # JSON array of URLs
    replace_certificates: bool = Form(False, alias="replaceCertificates"),

    # ── Files ─────────────────────────────────────────────────────────────────
    cv: Optional[UploadFile] = File(None),
    certificates: Optional[List[UploadFile]] = File(None),

    db: Session = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
    current_user: User = Depends(require_freelancer),
):
    """
    Update account and freelancer profile in one go.

    Certificates in `existingCertificates` are kept (an omitted or empty list
    keeps everything unless `replaceCertificates` is set); uploaded files and
    `newCertificates` URLs are appended.
    """
    account = {
        "first_name": first_name,
        "last_name": last_name,
        "user_name": user_name,
        "email": email,
        "phone": phone,
        "location": location,
    }
    # Blank form values arrive as None; a sent blank phone or location clears it
    form = await request.form()
    for key in ("phone", "location"):
        if account[key] is None and key in form:
            account[key] = ""
    cleaned = clean_account_fields(account)
    existing = parse_url_list(existing_certificates, "existingCertificates")
    new_urls = parse_url_list(new_certificates, "newCertificates") or []
    certificate_files = real_uploads(certificates)
    check_certificate_count(len(new_urls) + len(certificate_files))

    # Fail before uploading anything that would be orphaned by a conflict
    ensure_no_conflict(db, cleaned.get("email"), cleaned.get("user_name"), exclude_id=current_user.id)

    # ── Uploads complete before the transaction that stores their URLs ────────
    new_cv = cv_file_path.strip() if cv_file_path and cv_file_path.strip() else None
    if cv is not None and cv.filename:
        new_cv = (await store.save(cv, "cv")).secure_url
    new_urls += await store.save_many(certificate_files, "certificate")

    profile, created = update_freelancer_profile(
        db,
        current_user,
        account,
        {
            "title": title,
            "experience": experience,
            "expected_salary": expected_salary,
            "salary_currency": salary_currency,
            "bio": bio,
            "availability": availability,
            "available_from": available_from,
        },
        new_cv=new_cv,
        new_certificates=new_urls,
        existing_certificates=existing,
        replace_certificates=replace_certificates,
    )

    if created and profile.title:
        background_tasks.add_task(
            email_service.send_profile_completed, current_user.email, current_user.first_name, profile.title
        )
    else:
        background_tasks.add_task(
            email_service.send_profile_updated, current_user.email, current_user.first_name
        )

    return _profile_response(current_user, "Profile updated successfully")


@router.delete("/certificate", response_model=FreelancerProfileResponse)
async def delete_certificate(
    payload: CertificateRemoval,
    db: Session = Depends(get_db),
    store: MediaStore = Depends(get_media_store),
    current_user: User = Depends(require_freelancer),
):
    """Remove one certificate. The reference goes even if the stored file cannot be deleted."""
    await remove_certificate(db, store, current_user, payload.certificate_url)
    return _profile_response(current_user, "Certificate removed")
